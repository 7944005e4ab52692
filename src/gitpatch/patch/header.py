"""File header parser — the lines between ``diff --git`` and the first hunk.

Header lines are matched against an ordered transition table keyed by line
prefix and current :class:`HeaderState`. The first matching entry fires, its
handler consumes the field, and the state moves on. A line that matches no
entry ends the header.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, FrozenSet, Optional, Tuple

from gitpatch.patch.cursor import ParseCursor
from gitpatch.patch.errors import DuplicatePathError, HeaderError
from gitpatch.patch.models import DEV_NULL, DeltaStatus
from gitpatch.patch.quoting import decode_path, quoted_length, unquote_path

_OID_RE = re.compile(rb"[0-9a-fA-F]{1,64}")

MAX_MODE = 0o177777


class HeaderState(Enum):
    DIFF = "diff"
    PATH = "path"
    MODE = "mode"
    INDEX = "index"
    SIMILARITY = "similarity"
    RENAME = "rename"
    COPY = "copy"
    END = "end"


@dataclass
class PatchHeader:
    """Header fields accumulated for one file section."""

    line_no: int
    prefix_len: int = 1
    # Paths from ``diff --git``; prefixed unless ``combined``.
    git_old_path: Optional[str] = None
    git_new_path: Optional[str] = None
    # Paths from ``---`` / ``+++``, prefixed, ``/dev/null`` kept verbatim.
    old_path: Optional[str] = None
    new_path: Optional[str] = None
    rename_old_path: Optional[str] = None
    rename_new_path: Optional[str] = None
    old_mode: Optional[int] = None
    new_mode: Optional[int] = None
    old_id: Optional[str] = None
    new_id: Optional[str] = None
    status: DeltaStatus = DeltaStatus.MODIFIED
    similarity: Optional[int] = None
    mode_change: bool = False
    combined: bool = False

    @property
    def added(self) -> bool:
        return self.status == DeltaStatus.ADDED or self.old_path == DEV_NULL

    @property
    def deleted(self) -> bool:
        return self.status == DeltaStatus.DELETED or self.new_path == DEV_NULL


# ---- path helpers ----


def read_path(cursor: ParseCursor) -> str:
    """Consume the rest of the line as a path.

    Quoted paths are unescaped. Unquoted paths end at a tab, which is where
    ``diff -u`` puts its timestamps.
    """
    line_no = cursor.line_no
    raw = cursor.rest_of_line()
    cursor.advance_chars(len(raw))

    if raw.startswith(b'"'):
        path = unquote_path(raw[:quoted_length(raw)], line_no)
        if not path:
            raise HeaderError("patch contains empty path", line_no)
        return path

    tab = raw.find(b"\t")
    if tab >= 0:
        raw = raw[:tab]
    raw = raw.rstrip()
    if not raw:
        raise HeaderError("patch contains empty path", line_no)
    return decode_path(raw)


def strip_prefix(path: str, prefix_len: int, line_no: Optional[int] = None) -> str:
    """Drop *prefix_len* leading components (``a/``, ``b/``) from *path*."""
    if prefix_len == 0:
        return path
    parts = path.split("/", prefix_len)
    if len(parts) <= prefix_len or not parts[-1]:
        raise HeaderError(
            f"header filename does not contain {prefix_len} path components", line_no
        )
    return parts[-1]


def _try_strip(path: str, prefix_len: int) -> Optional[str]:
    try:
        return strip_prefix(path, prefix_len)
    except HeaderError:
        return None


def split_git_header_paths(
    rest: bytes, prefix_len: int, line_no: Optional[int] = None
) -> Tuple[Optional[str], Optional[str]]:
    """Split the ``<old> <new>`` part of a ``diff --git`` line.

    Unquoted names may contain spaces, so the split is taken where both
    sides name the same file once their prefixes are removed. Returns
    ``(None, None)`` when no unambiguous split exists; the ``---``/``+++``
    lines must then supply the paths.
    """
    if rest.startswith(b'"'):
        end = quoted_length(rest)
        old = unquote_path(rest[:end], line_no)
        if not rest[end:].startswith(b" "):
            raise HeaderError("corrupt old path in git diff header", line_no)
        new_raw = rest[end + 1:]
        if not new_raw:
            raise HeaderError("corrupt new path in git diff header", line_no)
        new = unquote_path(new_raw, line_no) if new_raw.startswith(b'"') else decode_path(new_raw)
        return old, new

    if rest.endswith(b'"'):
        split = rest.rfind(b' "')
        if split <= 0:
            raise HeaderError("corrupt new path in git diff header", line_no)
        return decode_path(rest[:split]), unquote_path(rest[split + 1:], line_no)

    spaces = [idx for idx, c in enumerate(rest) if c == ord(" ")]
    for idx in spaces:
        old, new = decode_path(rest[:idx]), decode_path(rest[idx + 1:])
        old_name = _try_strip(old, prefix_len)
        if old_name is not None and old_name == _try_strip(new, prefix_len):
            return old, new
    if len(spaces) == 1:
        idx = spaces[0]
        return decode_path(rest[:idx]), decode_path(rest[idx + 1:])
    return None, None


# ---- field handlers ----


def _read_mode(cursor: ParseCursor) -> int:
    mode = cursor.advance_digits(8)
    if mode is None or mode > MAX_MODE:
        raise HeaderError("invalid file mode", cursor.line_no)
    return mode


def _read_oid(cursor: ParseCursor) -> str:
    m = _OID_RE.match(cursor.line)
    if not m:
        raise HeaderError("invalid index line", cursor.line_no)
    cursor.advance_chars(m.end())
    return m.group(0).decode("ascii").lower()


def _parse_old_path(header: PatchHeader, cursor: ParseCursor) -> None:
    if header.old_path is not None:
        raise DuplicatePathError("old", cursor.line_no)
    header.old_path = read_path(cursor)


def _parse_new_path(header: PatchHeader, cursor: ParseCursor) -> None:
    if header.new_path is not None:
        raise DuplicatePathError("new", cursor.line_no)
    header.new_path = read_path(cursor)


def _parse_old_mode(header: PatchHeader, cursor: ParseCursor) -> None:
    header.old_mode = _read_mode(cursor)
    header.mode_change = True


def _parse_new_mode(header: PatchHeader, cursor: ParseCursor) -> None:
    header.new_mode = _read_mode(cursor)
    header.mode_change = True


def _parse_deleted_file_mode(header: PatchHeader, cursor: ParseCursor) -> None:
    header.old_mode = _read_mode(cursor)
    header.status = DeltaStatus.DELETED


def _parse_new_file_mode(header: PatchHeader, cursor: ParseCursor) -> None:
    header.new_mode = _read_mode(cursor)
    header.status = DeltaStatus.ADDED


def _parse_combined_mode(header: PatchHeader, cursor: ParseCursor) -> None:
    # mode <parent>,<parent>..<result>
    modes = [_read_mode(cursor)]
    while cursor.advance_expected(b","):
        modes.append(_read_mode(cursor))
    if not cursor.advance_expected(b".."):
        raise HeaderError("invalid file mode", cursor.line_no)
    header.old_mode = modes[0]
    header.new_mode = _read_mode(cursor)
    header.mode_change = True


def _parse_index(header: PatchHeader, cursor: ParseCursor) -> None:
    old_id = _read_oid(cursor)
    if header.combined:
        while cursor.advance_expected(b","):
            _read_oid(cursor)
    if not cursor.advance_expected(b".."):
        raise HeaderError("invalid index line", cursor.line_no)
    header.old_id = old_id
    header.new_id = _read_oid(cursor)

    if cursor.advance_expected(b" "):
        mode = _read_mode(cursor)
        if header.old_mode is None:
            header.old_mode = mode
        if header.new_mode is None:
            header.new_mode = mode


def _read_percentage(cursor: ParseCursor) -> int:
    value = cursor.advance_digits(10)
    if value is None or value > 100 or not cursor.advance_expected(b"%"):
        raise HeaderError("invalid similarity percentage", cursor.line_no)
    return value


def _parse_similarity(header: PatchHeader, cursor: ParseCursor) -> None:
    header.similarity = _read_percentage(cursor)


def _parse_dissimilarity(header: PatchHeader, cursor: ParseCursor) -> None:
    header.similarity = 100 - _read_percentage(cursor)


def _parse_rename_from(header: PatchHeader, cursor: ParseCursor) -> None:
    header.rename_old_path = read_path(cursor)
    header.status = DeltaStatus.RENAMED


def _parse_rename_to(header: PatchHeader, cursor: ParseCursor) -> None:
    header.rename_new_path = read_path(cursor)


def _parse_copy_from(header: PatchHeader, cursor: ParseCursor) -> None:
    header.rename_old_path = read_path(cursor)
    header.status = DeltaStatus.COPIED


def _parse_copy_to(header: PatchHeader, cursor: ParseCursor) -> None:
    header.rename_new_path = read_path(cursor)


# ---- transition table ----

Handler = Callable[[PatchHeader, ParseCursor], None]


@dataclass(frozen=True)
class _Transition:
    prefix: bytes
    states: Optional[FrozenSet[HeaderState]]  # None matches any state
    next_state: HeaderState
    handler: Optional[Handler]  # None: terminator, the line is left unread
    # Also matches outside `states` when this holds, e.g. a repeated path.
    repeat: Optional[Callable[[PatchHeader], bool]] = None


def _t(
    prefix: bytes,
    states,
    next_state: HeaderState,
    handler: Optional[Handler],
    repeat: Optional[Callable[[PatchHeader], bool]] = None,
) -> _Transition:
    return _Transition(
        prefix, None if states is None else frozenset(states), next_state, handler, repeat
    )


_S = HeaderState

_TRANSITIONS: Tuple[_Transition, ...] = (
    _t(b"deleted file mode ", [_S.DIFF], _S.MODE, _parse_deleted_file_mode),
    _t(b"new file mode ", [_S.DIFF], _S.MODE, _parse_new_file_mode),
    _t(b"old mode ", [_S.DIFF], _S.MODE, _parse_old_mode),
    _t(b"new mode ", [_S.MODE], _S.END, _parse_new_mode),
    _t(b"mode ", [_S.DIFF], _S.MODE, _parse_combined_mode),
    _t(b"index ", [_S.DIFF, _S.MODE, _S.END], _S.INDEX, _parse_index),
    _t(b"--- ", [_S.DIFF, _S.MODE, _S.INDEX], _S.PATH, _parse_old_path,
       repeat=lambda h: h.old_path is not None),
    _t(b"+++ ", [_S.PATH], _S.END, _parse_new_path,
       repeat=lambda h: h.new_path is not None),
    _t(b"GIT binary patch", [_S.INDEX, _S.END], _S.END, None),
    _t(b"Binary files ", [_S.DIFF, _S.INDEX, _S.END], _S.END, None),
    _t(b"similarity index ", [_S.DIFF, _S.END], _S.SIMILARITY, _parse_similarity),
    _t(b"dissimilarity index ", [_S.DIFF, _S.END], _S.SIMILARITY, _parse_dissimilarity),
    _t(b"rename from ", [_S.DIFF, _S.SIMILARITY, _S.END], _S.RENAME, _parse_rename_from),
    _t(b"rename old ", [_S.DIFF, _S.SIMILARITY, _S.END], _S.RENAME, _parse_rename_from),
    _t(b"copy from ", [_S.DIFF, _S.SIMILARITY, _S.END], _S.COPY, _parse_copy_from),
    _t(b"rename to ", [_S.RENAME], _S.END, _parse_rename_to),
    _t(b"rename new ", [_S.RENAME], _S.END, _parse_rename_to),
    _t(b"copy to ", [_S.COPY], _S.END, _parse_copy_to),
    # format-patch signature separator
    _t(b"-- ", None, _S.END, None),
)


def _match(
    cursor: ParseCursor, header: PatchHeader, state: HeaderState
) -> Optional[_Transition]:
    for transition in _TRANSITIONS:
        if transition.states is not None and state not in transition.states:
            if transition.repeat is None or not transition.repeat(header):
                continue
        if cursor.next_is(transition.prefix):
            return transition
    return None


def parse_header(
    cursor: ParseCursor,
    header: PatchHeader,
    state: HeaderState = HeaderState.DIFF,
) -> HeaderState:
    """Consume header lines into *header* and return the final state.

    The cursor is left on the first line that is not a header field.
    """
    while not cursor.at_end:
        transition = _match(cursor, header, state)
        if transition is None:
            break

        state = transition.next_state
        if transition.handler is None:
            break

        cursor.advance_chars(len(transition.prefix))
        transition.handler(header, cursor)
        cursor.advance_ws()
        if not cursor.advance_nl():
            raise HeaderError("trailing data", cursor.line_no)
    return state


def header_paths(header: PatchHeader) -> Tuple[Optional[str], Optional[str]]:
    """The ``(old, new)`` labels git prints for this file, prefixes included."""
    old = header.old_path if header.old_path is not None else header.git_old_path
    new = header.new_path if header.new_path is not None else header.git_new_path
    if header.added:
        old = DEV_NULL
    if header.deleted:
        new = DEV_NULL
    return old, new
