"""gitpatch CLI — Typer application with parse, check, and init commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from gitpatch import __version__

app = typer.Typer(
    name="gitpatch",
    help="Parse unified diffs and git patches into structured records.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("gitpatch")
    logger.handlers[:] = [RichHandler(console=console, show_path=False, show_time=False)]
    logger.setLevel(logging.DEBUG if verbose else logging.ERROR)
    logger.propagate = False


def _resolve_root() -> Path:
    """Repo root when inside a git repository, else the working directory."""
    from gitpatch.git.adapter import GitError, get_repo_root

    try:
        return get_repo_root()
    except GitError:
        return Path.cwd()


def _load_config(config: Optional[str]):
    from gitpatch.config.loader import ConfigError, load_config

    try:
        return load_config(_resolve_root(), config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


def _read_patch(path: str) -> bytes:
    if path == "-":
        return typer.get_binary_stream("stdin").read()
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        console.print(f"[bold red]Error:[/bold red] cannot read {path}: {exc.strerror}")
        raise typer.Exit(code=2) from exc


# ── parse ─────────────────────────────────────────────────────────────────────


@app.command()
def parse(
    path: Optional[str] = typer.Argument(None, help="Patch file, or - for stdin"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .gitpatch.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json | yaml"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write report to file"),
    prefix_len: Optional[int] = typer.Option(None, "--prefix-len", "-p", help="Path components to strip"),
    lines: bool = typer.Option(False, "--lines", "-l", help="Show every hunk line"),
    staged: bool = typer.Option(False, "--staged", help="Parse the staged changes of the current repo"),
    from_ref: Optional[str] = typer.Option(None, "--from", help="Parse the diff from this commit"),
    to_ref: Optional[str] = typer.Option(None, "--to", help="End commit for --from (default HEAD)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Parse a patch and print its files, hunks, and lines."""
    from gitpatch.config.schema import OUTPUT_FORMATS
    from gitpatch.git.adapter import GitError, get_range_diff, get_repo_root, get_staged_diff
    from gitpatch.output import json_report, terminal, yaml_report
    from gitpatch.patch import PatchError, parse_patch

    _configure_logging(verbose)
    cfg = _load_config(config)

    # --- CLI overrides ---
    if format:
        if format not in OUTPUT_FORMATS:
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]
    if prefix_len is not None:
        if prefix_len < 0:
            console.print(f"[bold red]Invalid prefix length:[/bold red] {prefix_len}")
            raise typer.Exit(code=2)
        cfg.parse.prefix_len = prefix_len
    if lines:
        cfg.output.show_lines = True

    # --- Get patch text ---
    if staged or from_ref:
        if path is not None:
            console.print("[bold red]Error:[/bold red] give a patch file or --staged/--from, not both")
            raise typer.Exit(code=2)
        try:
            repo_root = get_repo_root()
            if from_ref:
                patch_text = get_range_diff(repo_root, from_ref, to_ref or "HEAD")
            else:
                patch_text = get_staged_diff(repo_root)
        except GitError as exc:
            console.print(f"[bold red]Git error:[/bold red] {exc}")
            raise typer.Exit(code=2) from exc
        if not patch_text.strip():
            console.print("[dim]No changes.[/dim]")
            raise typer.Exit(code=0)
    else:
        patch_text = _read_patch(path or "-")

    if verbose:
        console.print(f"[dim]Input: {len(patch_text)} bytes[/dim]")
        console.print(f"[dim]Prefix length: {cfg.parse.prefix_len}[/dim]")

    # --- Parse ---
    try:
        document = parse_patch(patch_text, prefix_len=cfg.parse.prefix_len)
    except PatchError as exc:
        console.print(f"[bold red]Parse error:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    # --- Output ---
    if cfg.output.format == "terminal":
        out_console = Console(file=open(output, "w", encoding="utf-8")) if output else Console()
        try:
            terminal.render(
                document,
                show_lines=cfg.output.show_lines,
                show_summary=cfg.output.show_summary,
                console=out_console,
            )
        finally:
            if output:
                out_console.file.close()
    else:
        renderer = json_report if cfg.output.format == "json" else yaml_report
        report_text = renderer.render(document, include_lines=cfg.output.show_lines)
        if output:
            Path(output).write_text(report_text, encoding="utf-8")
            if verbose:
                console.print(f"[dim]Report written to {output}[/dim]")
        else:
            print(report_text)

    # --- Exit code ---
    if document.warnings and cfg.parse.fail_on_warnings:
        raise typer.Exit(code=1)
    raise typer.Exit(code=0)


# ── check ─────────────────────────────────────────────────────────────────────


@app.command()
def check(
    paths: List[str] = typer.Argument(..., help="Patch files to validate"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .gitpatch.toml"),
    prefix_len: Optional[int] = typer.Option(None, "--prefix-len", "-p", help="Path components to strip"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Validate patch files without printing their contents."""
    from gitpatch.patch import PatchError, parse_patch

    _configure_logging(verbose)
    cfg = _load_config(config)
    strip = cfg.parse.prefix_len if prefix_len is None else prefix_len

    failed = 0
    for path in paths:
        patch_text = _read_patch(path)
        try:
            document = parse_patch(patch_text, prefix_len=strip)
        except PatchError as exc:
            failed += 1
            console.print(f"[red]✗[/red] {path}: {exc}")
            continue

        if document.warnings and cfg.parse.fail_on_warnings:
            failed += 1
            console.print(f"[yellow]⚠[/yellow] {path}: {len(document.warnings)} warning(s)")
        else:
            console.print(f"[green]✓[/green] {path}: {len(document)} file(s)")
        for warning in document.warnings:
            console.print(f"    [dim]{warning.message} at line {warning.line_no}[/dim]")

    if failed:
        raise typer.Exit(code=1)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .gitpatch.toml."""
    from gitpatch.config.defaults import DEFAULT_TOML
    from gitpatch.config.loader import CONFIG_FILENAME

    config_path = _resolve_root() / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"gitpatch {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """gitpatch — parse unified diffs and git patches."""
