"""Patch parsing — cursor, header/hunk/binary parsers, assembler, models."""

from gitpatch.patch.errors import (
    BinaryDataError,
    DuplicatePathError,
    HeaderError,
    HunkError,
    HunkHeaderError,
    HunkLineCountError,
    LineCountOverflowError,
    NoPatchFoundError,
    PatchError,
    PathMismatchError,
)
from gitpatch.patch.models import (
    BinaryKind,
    BinaryPayload,
    DeltaStatus,
    FileDelta,
    Hunk,
    Line,
    LineOrigin,
    ParseWarning,
    PatchDocument,
)
from gitpatch.patch.parser import PatchParser, parse_patch

__all__ = [
    "BinaryDataError",
    "BinaryKind",
    "BinaryPayload",
    "DeltaStatus",
    "DuplicatePathError",
    "FileDelta",
    "HeaderError",
    "Hunk",
    "HunkError",
    "HunkHeaderError",
    "HunkLineCountError",
    "Line",
    "LineCountOverflowError",
    "LineOrigin",
    "NoPatchFoundError",
    "ParseWarning",
    "PatchDocument",
    "PatchError",
    "PatchParser",
    "PathMismatchError",
    "parse_patch",
]
