"""Data models for parsed patches."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple

DEV_NULL = "/dev/null"

# File-type bits of a git mode (regular file, symlink, gitlink...).
MODE_TYPE_MASK = 0o170000


class DeltaStatus(str, Enum):
    UNMODIFIED = "unmodified"
    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"
    RENAMED = "renamed"
    COPIED = "copied"
    TYPECHANGE = "typechange"


class LineOrigin(str, Enum):
    CONTEXT = " "
    ADDITION = "+"
    DELETION = "-"
    CONTEXT_EOFNL = "="
    ADD_EOFNL = ">"
    DEL_EOFNL = "<"


class BinaryKind(str, Enum):
    LITERAL = "literal"
    DELTA = "delta"


@dataclass(frozen=True, slots=True)
class Line:
    """A single hunk line. ``content`` keeps its trailing newline."""

    content: bytes
    origin: LineOrigin
    old_lineno: int
    new_lineno: int
    content_offset: int  # offset of ``content`` in the parsed buffer

    @property
    def content_len(self) -> int:
        return len(self.content)

    @property
    def text(self) -> str:
        """Content decoded for display, without the line terminator."""
        return self.content.decode("utf-8", "replace").rstrip("\r\n")


@dataclass(frozen=True)
class Hunk:
    """A contiguous block of changes with its old and new line ranges."""

    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    header: str
    lines: Tuple[Line, ...] = ()
    merge_ranges: Tuple[Tuple[int, int], ...] = ()  # extra parents of a combined diff


@dataclass(frozen=True)
class BinaryPayload:
    """One side of a ``GIT binary patch``; ``data`` is inflated."""

    kind: BinaryKind
    length: int
    data: bytes


@dataclass(frozen=True)
class FileDelta:
    """Everything a patch says about one file."""

    old_path: Optional[str]
    new_path: Optional[str]
    status: DeltaStatus = DeltaStatus.MODIFIED
    old_mode: Optional[int] = None
    new_mode: Optional[int] = None
    old_id: Optional[str] = None
    new_id: Optional[str] = None
    similarity: Optional[int] = None  # meaningful for renames and copies
    is_binary: bool = False
    hunks: Tuple[Hunk, ...] = ()
    old_binary: Optional[BinaryPayload] = None
    new_binary: Optional[BinaryPayload] = None
    line_no: int = 0

    @property
    def path(self) -> str:
        """The path the file has after the patch (old path for deletions)."""
        return self.new_path or self.old_path or DEV_NULL

    @property
    def lines(self) -> Iterator[Line]:
        for hunk in self.hunks:
            yield from hunk.lines

    @property
    def additions(self) -> int:
        return sum(1 for line in self.lines if line.origin == LineOrigin.ADDITION)

    @property
    def deletions(self) -> int:
        return sum(1 for line in self.lines if line.origin == LineOrigin.DELETION)


@dataclass(frozen=True)
class ParseWarning:
    """A condition reported without failing the parse."""

    message: str
    line_no: int


@dataclass(frozen=True)
class PatchDocument:
    """The parsed result of one patch text: its files, in order."""

    files: Tuple[FileDelta, ...]
    warnings: Tuple[ParseWarning, ...] = ()

    def __iter__(self) -> Iterator[FileDelta]:
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)
