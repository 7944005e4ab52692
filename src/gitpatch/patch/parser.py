"""Patch assembler — turns patch text into a :class:`PatchDocument`.

Handles git patches (``diff --git``), combined diffs (``diff --cc``) and plain
unified diffs (``---``/``+++`` pairs), including renames, copies, mode
changes, quoted paths, binary payloads and missing-newline markers. Text
between file sections (mail headers, ``diff -r`` command lines, format-patch
signatures) is skipped.

Usage::

    document = parse_patch(patch_bytes)
    for delta in document:
        for hunk in delta.hunks:
            ...
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Generator, List, Optional, Union

from gitpatch.patch.binary import parse_binary_nodata, parse_binary_patch
from gitpatch.patch.cursor import ParseCursor
from gitpatch.patch.errors import (
    HeaderError,
    HunkHeaderError,
    NoPatchFoundError,
    PathMismatchError,
)
from gitpatch.patch.header import (
    PatchHeader,
    header_paths,
    parse_header,
    read_path,
    split_git_header_paths,
    strip_prefix,
)
from gitpatch.patch.hunk import (
    NO_NEWLINE_WARNING,
    HunkHeader,
    is_hunk_header,
    parse_hunk_body,
    parse_hunk_header,
)
from gitpatch.patch.models import (
    DEV_NULL,
    MODE_TYPE_MASK,
    BinaryPayload,
    DeltaStatus,
    FileDelta,
    Hunk,
    ParseWarning,
    PatchDocument,
)

logger = logging.getLogger(__name__)

_GIT_HEADER = b"diff --git "
_COMBINED_HEADERS = (b"diff --cc ", b"diff --combined ")


class _Section(Enum):
    GIT = "git"
    COMBINED = "combined"
    PLAIN = "plain"


class PatchParser:
    """Parse patch text into file deltas.

    Every call to :meth:`parse` or :meth:`iter_files` works on its own cursor,
    so one parser (or many) can be used from several threads at once.
    """

    def __init__(self, patch_text: Union[bytes, str], *, prefix_len: int = 1) -> None:
        if isinstance(patch_text, str):
            patch_text = patch_text.encode("utf-8", "surrogateescape")
        if prefix_len < 0:
            raise ValueError("prefix_len must be non-negative")
        self._content = patch_text
        self._prefix_len = prefix_len

    def parse(self) -> PatchDocument:
        """Parse the whole text. Raises :class:`PatchError` on the first problem."""
        warnings: List[ParseWarning] = []
        files = tuple(self._iter_files(warnings))
        if not files:
            raise NoPatchFoundError()

        if not self._content.endswith(b"\n"):
            warnings.append(ParseWarning(NO_NEWLINE_WARNING, self._content.count(b"\n") + 1))
        for warning in warnings:
            logger.warning("%s at line %d", warning.message, warning.line_no)

        return PatchDocument(files=files, warnings=tuple(warnings))

    def iter_files(self) -> Generator[FileDelta, None, None]:
        """Yield each file delta as soon as its section is complete."""
        yield from self._iter_files([])

    # ---- sections ----

    def _iter_files(self, warnings: List[ParseWarning]) -> Generator[FileDelta, None, None]:
        cursor = ParseCursor(self._content)
        while True:
            section = self._seek_section(cursor)
            if section is None:
                return
            delta = self._parse_file(cursor, section, warnings)
            logger.debug(
                "parsed %s (%s, %d hunks) at line %d",
                delta.path, delta.status.value, len(delta.hunks), delta.line_no,
            )
            yield delta

    def _seek_section(self, cursor: ParseCursor) -> Optional[_Section]:
        while not cursor.at_end:
            if cursor.next_is(_GIT_HEADER):
                return _Section.GIT
            if any(cursor.next_is(prefix) for prefix in _COMBINED_HEADERS):
                return _Section.COMBINED
            if cursor.next_is(b"--- ") and cursor.following_line().startswith(b"+++ "):
                return _Section.PLAIN
            if is_hunk_header(cursor):
                line_no = cursor.line_no
                try:
                    parse_hunk_header(cursor)
                except HunkHeaderError:
                    # Not a real hunk header; leading noise.
                    cursor.advance_line()
                    continue
                raise HunkHeaderError("invalid hunk header outside patch", line_no)
            cursor.advance_line()
        return None

    def _parse_file(
        self, cursor: ParseCursor, section: _Section, warnings: List[ParseWarning]
    ) -> FileDelta:
        header = PatchHeader(line_no=cursor.line_no, prefix_len=self._prefix_len)

        if section is _Section.GIT:
            cursor.advance_chars(len(_GIT_HEADER))
            header.git_old_path, header.git_new_path = split_git_header_paths(
                cursor.rest_of_line(), self._prefix_len, cursor.line_no
            )
            cursor.advance_line()
        elif section is _Section.COMBINED:
            prefix = next(p for p in _COMBINED_HEADERS if cursor.next_is(p))
            cursor.advance_chars(len(prefix))
            header.git_old_path = header.git_new_path = read_path(cursor)
            header.combined = True
            cursor.advance_line()

        parse_header(cursor, header)

        old_binary: Optional[BinaryPayload] = None
        new_binary: Optional[BinaryPayload] = None
        binary = False
        hunks: List[Hunk] = []

        if cursor.next_is(b"GIT binary patch"):
            old_binary, new_binary = parse_binary_patch(cursor)
            binary = True
        elif cursor.next_is(b"Binary files "):
            parse_binary_nodata(cursor, *header_paths(header))
            binary = True
        else:
            hunks = self._parse_hunks(cursor, header, warnings)

        return self._finalize(header, hunks, binary, old_binary, new_binary)

    def _parse_hunks(
        self, cursor: ParseCursor, header: PatchHeader, warnings: List[ParseWarning]
    ) -> List[Hunk]:
        hunks: List[Hunk] = []
        parents: Optional[int] = None if header.combined else 1
        while is_hunk_header(cursor):
            line_no = cursor.line_no
            hunk_header: HunkHeader = parse_hunk_header(cursor)
            if parents is None:
                parents = hunk_header.parents
            if hunk_header.parents != parents:
                raise HunkHeaderError("invalid patch hunk header", line_no)

            lines = parse_hunk_body(cursor, hunk_header, warnings)
            (old_start, old_lines), *merge_ranges = hunk_header.old_ranges
            hunks.append(
                Hunk(
                    old_start=old_start,
                    old_lines=old_lines,
                    new_start=hunk_header.new_start,
                    new_lines=hunk_header.new_lines,
                    header=hunk_header.text,
                    lines=tuple(lines),
                    merge_ranges=tuple(merge_ranges),
                )
            )
        return hunks

    # ---- finalization ----

    def _resolve_path(
        self,
        side: str,
        git_path: Optional[str],
        header_path: Optional[str],
        explicit_path: Optional[str],
        is_null: bool,
        header: PatchHeader,
    ) -> Optional[str]:
        """Pick the final path for one side and check the declarations agree."""
        if is_null:
            if header_path is not None and header_path != DEV_NULL:
                raise PathMismatchError(
                    f"expected {side} path of '{DEV_NULL}'", header.line_no, side=side
                )
            return None
        if explicit_path is not None:
            # rename/copy paths carry no prefix and take precedence
            return explicit_path

        stripped_header = None
        if header_path is not None and header_path != DEV_NULL:
            stripped_header = strip_prefix(header_path, self._prefix_len, header.line_no)
        stripped_git = None
        if git_path is not None and git_path != DEV_NULL:
            stripped_git = git_path if header.combined else strip_prefix(
                git_path, self._prefix_len, header.line_no
            )

        candidates = [p for p in (stripped_header, stripped_git) if p is not None]
        if any(p != candidates[0] for p in candidates):
            raise PathMismatchError(f"mismatched {side} path names", header.line_no, side=side)
        return candidates[0] if candidates else None

    def _finalize(
        self,
        header: PatchHeader,
        hunks: List[Hunk],
        binary: bool,
        old_binary: Optional[BinaryPayload],
        new_binary: Optional[BinaryPayload],
    ) -> FileDelta:
        if header.old_path is not None and header.new_path is None:
            raise HeaderError("missing new path", header.line_no)
        if header.old_path is None and header.new_path is not None:
            raise HeaderError("missing old path", header.line_no)

        added, deleted = header.added, header.deleted
        old_path = self._resolve_path(
            "old", header.git_old_path, header.old_path, header.rename_old_path, added, header
        )
        new_path = self._resolve_path(
            "new", header.git_new_path, header.new_path, header.rename_new_path, deleted, header
        )
        if old_path is None and new_path is None:
            raise HeaderError("patch header lacks old / new paths", header.line_no)

        old_mode, new_mode = header.old_mode, header.new_mode
        if new_mode is None and not deleted:
            new_mode = old_mode
        if added:
            old_mode = None
        if deleted:
            new_mode = None

        status = _status(header, added, deleted, old_mode, new_mode)

        if status == DeltaStatus.MODIFIED and not hunks and not binary:
            if header.mode_change and old_mode == new_mode:
                raise HeaderError("patch contains no changes", header.line_no)
            if not header.mode_change:
                binary = True

        return FileDelta(
            old_path=old_path,
            new_path=new_path,
            status=status,
            old_mode=old_mode,
            new_mode=new_mode,
            old_id=None if added else header.old_id,
            new_id=None if deleted else header.new_id,
            similarity=header.similarity,
            is_binary=binary,
            hunks=tuple(hunks),
            old_binary=old_binary,
            new_binary=new_binary,
            line_no=header.line_no,
        )


def _status(
    header: PatchHeader,
    added: bool,
    deleted: bool,
    old_mode: Optional[int],
    new_mode: Optional[int],
) -> DeltaStatus:
    if added:
        return DeltaStatus.ADDED
    if deleted:
        return DeltaStatus.DELETED
    if header.status in (DeltaStatus.RENAMED, DeltaStatus.COPIED):
        return header.status
    if (
        old_mode is not None
        and new_mode is not None
        and old_mode & MODE_TYPE_MASK != new_mode & MODE_TYPE_MASK
    ):
        return DeltaStatus.TYPECHANGE
    return DeltaStatus.MODIFIED


def parse_patch(patch_text: Union[bytes, str], *, prefix_len: int = 1) -> PatchDocument:
    """Parse *patch_text* into a :class:`PatchDocument`."""
    return PatchParser(patch_text, prefix_len=prefix_len).parse()
