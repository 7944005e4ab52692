"""Rich terminal reporter — file table, optional hunk listing."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from gitpatch.patch.models import DeltaStatus, FileDelta, LineOrigin, PatchDocument

_STATUS_STYLE = {
    DeltaStatus.ADDED: "bold green",
    DeltaStatus.DELETED: "bold red",
    DeltaStatus.MODIFIED: "bold yellow",
    DeltaStatus.RENAMED: "bold cyan",
    DeltaStatus.COPIED: "bold cyan",
    DeltaStatus.TYPECHANGE: "bold magenta",
}

_ORIGIN_STYLE = {
    LineOrigin.ADDITION: "green",
    LineOrigin.DELETION: "red",
    LineOrigin.CONTEXT: "",
}


def _display_path(delta: FileDelta) -> str:
    if delta.status in (DeltaStatus.RENAMED, DeltaStatus.COPIED):
        return f"{delta.old_path} → {delta.new_path}"
    return delta.path


def _lineno(value: int) -> str:
    return str(value) if value >= 0 else ""


def _print_lines(console: Console, delta: FileDelta) -> None:
    for hunk in delta.hunks:
        console.print(Text(hunk.header, style="cyan"))
        for line in hunk.lines:
            style = _ORIGIN_STYLE.get(line.origin, "dim")
            marker = line.origin.value if line.origin in _ORIGIN_STYLE else "\\"
            text = Text(f"{_lineno(line.old_lineno):>5} {_lineno(line.new_lineno):>5} ", style="dim")
            text.append(f"{marker}{line.text}", style=style)
            console.print(text)


def render(
    document: PatchDocument,
    *,
    show_lines: bool = False,
    show_summary: bool = True,
    console: Optional[Console] = None,
) -> None:
    """Print a parsed document to the terminal using Rich."""
    console = console or Console()

    table = Table(title="Patch Files", title_style="bold", border_style="dim")
    table.add_column("Status", justify="center", width=12)
    table.add_column("File", style="magenta")
    table.add_column("Mode", justify="center")
    table.add_column("Hunks", justify="right")
    table.add_column("+", justify="right", style="green")
    table.add_column("-", justify="right", style="red")

    for delta in document:
        mode = ""
        if delta.old_mode is not None and delta.new_mode is not None and delta.old_mode != delta.new_mode:
            mode = f"{delta.old_mode:06o} → {delta.new_mode:06o}"
        elif delta.new_mode is not None or delta.old_mode is not None:
            mode = f"{(delta.new_mode if delta.new_mode is not None else delta.old_mode):06o}"
        table.add_row(
            Text(delta.status.value, style=_STATUS_STYLE.get(delta.status, "")),
            Text(_display_path(delta)),
            mode,
            "binary" if delta.is_binary else str(len(delta.hunks)),
            str(delta.additions),
            str(delta.deletions),
        )
    console.print(table)

    if show_lines:
        for delta in document:
            if delta.hunks:
                console.print()
                console.print(Text(_display_path(delta), style="bold"))
                _print_lines(console, delta)

    for warning in document.warnings:
        console.print(f"[yellow]⚠[/yellow]  {warning.message} at line {warning.line_no}")

    if show_summary:
        _print_summary(console, document)


def _print_summary(console: Console, document: PatchDocument) -> None:
    console.print()
    console.print(f"[dim]Files:[/dim]      {len(document)}")
    console.print(f"[dim]Additions:[/dim]  {sum(d.additions for d in document)}")
    console.print(f"[dim]Deletions:[/dim]  {sum(d.deletions for d in document)}")
    console.print(f"[dim]Binary:[/dim]     {sum(1 for d in document if d.is_binary)}")
