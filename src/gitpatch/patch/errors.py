"""Patch parse errors.

Every failure raised while parsing derives from :class:`PatchError` and
carries the 1-based line number where it was detected, when there is one.
"""

from __future__ import annotations

from typing import Optional


class PatchError(Exception):
    """Raised when a patch cannot be parsed. Aborts the whole document."""

    def __init__(self, message: str, line_no: Optional[int] = None) -> None:
        self.message = message
        self.line_no = line_no
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.line_no is None:
            return self.message
        return f"{self.message} at line {self.line_no}"


class HeaderError(PatchError):
    """Malformed file header field."""


class DuplicatePathError(HeaderError):
    """The same side's path was declared twice."""

    def __init__(self, side: str, line_no: int) -> None:
        self.side = side
        super().__init__(f"patch contains duplicate {side} path", line_no)


class PathMismatchError(PatchError):
    """Paths declared in different places disagree."""

    def __init__(self, message: str, line_no: Optional[int] = None, side: Optional[str] = None) -> None:
        self.side = side
        super().__init__(message, line_no)


class HunkError(PatchError):
    """Malformed hunk body."""


class HunkHeaderError(HunkError):
    """Unparseable ``@@ ... @@`` line."""


class LineCountOverflowError(HunkError):
    """Line number arithmetic left the signed 64-bit range."""


class HunkLineCountError(HunkError):
    """Lines consumed by a hunk do not match its header."""


class BinaryDataError(PatchError):
    """Malformed ``GIT binary patch`` payload."""


class NoPatchFoundError(PatchError):
    """Input contains no file section at all."""

    def __init__(self) -> None:
        super().__init__("no patch found")
