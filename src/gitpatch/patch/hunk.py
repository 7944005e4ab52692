"""Hunk header and hunk body parsing.

Handles both the plain ``@@ -o,l +n,l @@`` form and the combined-diff form
``@@@ -o,l -o,l +n,l @@@`` (one ``-`` range per merge parent). Line number
arithmetic is checked against the signed 64-bit range so a crafted header
fails instead of producing nonsense line numbers.
"""

from __future__ import annotations

import re
from typing import List, NamedTuple, Optional, Tuple

from gitpatch.patch.cursor import MAX_DIGITS, ParseCursor
from gitpatch.patch.errors import (
    HunkError,
    HunkHeaderError,
    HunkLineCountError,
    LineCountOverflowError,
)
from gitpatch.patch.models import Line, LineOrigin, ParseWarning

INT64_MAX = 2**63 - 1
INT64_MIN = -(2**63)

_HUNK_START_RE = re.compile(rb"@@+ -")
_HUNK_HEADER_RE = re.compile(
    rb"(?P<ats>@@+)(?P<old>(?: -\d+(?:,\d+)?)+) \+(?P<new_start>\d+)(?:,(?P<new_lines>\d+))? (?P=ats)"
)
_OLD_RANGE_RE = re.compile(rb" -(\d+)(?:,(\d+))?")

_EOFNL_ORIGIN = {
    LineOrigin.ADDITION: LineOrigin.ADD_EOFNL,
    LineOrigin.DELETION: LineOrigin.DEL_EOFNL,
}

NO_NEWLINE_WARNING = "last line has no trailing newline"


class HunkHeader(NamedTuple):
    old_ranges: Tuple[Tuple[int, int], ...]  # one (start, lines) per parent
    new_start: int
    new_lines: int
    text: str

    @property
    def parents(self) -> int:
        return len(self.old_ranges)


def checked_add(a: int, b: int, line_no: Optional[int] = None) -> int:
    result = a + b
    if not INT64_MIN <= result <= INT64_MAX:
        raise LineCountOverflowError("unrepresentable line count", line_no)
    return result


def checked_sub(a: int, b: int, line_no: Optional[int] = None) -> int:
    result = a - b
    if not INT64_MIN <= result <= INT64_MAX:
        raise LineCountOverflowError("unrepresentable line count", line_no)
    return result


def is_hunk_header(cursor: ParseCursor) -> bool:
    """True if the current line starts like a hunk header."""
    return _HUNK_START_RE.match(cursor.line) is not None


def _bounded(raw: Optional[bytes], line_no: int) -> int:
    if raw is None:
        return 1
    if len(raw) > MAX_DIGITS:
        raise HunkHeaderError("invalid patch hunk header", line_no)
    value = int(raw)
    if value > INT64_MAX:
        raise HunkHeaderError("invalid patch hunk header", line_no)
    return value


def parse_hunk_header(cursor: ParseCursor) -> HunkHeader:
    """Parse the ``@@`` line under the cursor and advance past it."""
    line_no = cursor.line_no
    m = _HUNK_HEADER_RE.match(cursor.line)
    if not m:
        raise HunkHeaderError("invalid patch hunk header", line_no)

    ranges = _OLD_RANGE_RE.findall(m.group("old"))
    if len(ranges) != len(m.group("ats")) - 1:
        raise HunkHeaderError("invalid patch hunk header", line_no)

    old_ranges = tuple(
        (_bounded(start, line_no), _bounded(count or None, line_no)) for start, count in ranges
    )
    new_start = _bounded(m.group("new_start"), line_no)
    new_lines = _bounded(m.group("new_lines"), line_no)

    if not old_ranges[0][1] and not new_lines:
        raise HunkHeaderError("invalid patch hunk header", line_no)

    text = cursor.rest_of_line().decode("utf-8", "replace")
    cursor.advance_line()
    return HunkHeader(old_ranges, new_start, new_lines, text)


def _expected(header: HunkHeader) -> str:
    return (
        f"invalid patch hunk, expected {header.old_ranges[0][1]} old lines "
        f"and {header.new_lines} new lines"
    )


def parse_hunk_body(
    cursor: ParseCursor,
    header: HunkHeader,
    warnings: List[ParseWarning],
) -> List[Line]:
    """Consume the lines of one hunk.

    Stops once every counter from *header* is exhausted, at the next hunk
    header, or at end of input. A trailing ``\\ No newline at end of file``
    marker is attached as an EOFNL pseudo-line; its wording is not checked
    because diff tools localize it.
    """
    parents = header.parents
    old_start, old_total = header.old_ranges[0]
    old_remaining = [count for _, count in header.old_ranges]
    new_remaining = header.new_lines
    last_origin: Optional[LineOrigin] = None
    lines: List[Line] = []

    while (
        not cursor.at_end
        and (any(old_remaining) or new_remaining)
        and not is_hunk_header(cursor)
    ):
        line_no = cursor.line_no
        old_lineno = checked_sub(checked_add(old_start, old_total, line_no), old_remaining[0], line_no)
        new_lineno = checked_sub(
            checked_add(header.new_start, header.new_lines, line_no), new_remaining, line_no
        )
        raw = cursor.line
        prefix = parents

        if raw in (b"\n", b"\r\n"):
            # Blank context line whose leading space was stripped in transit.
            prefix = 0
            origin = LineOrigin.CONTEXT
            in_parent = [True] * parents
            in_result = True
        elif raw.startswith(b"\\"):
            if any(old_remaining):
                raise HunkError("invalid hunk", line_no)
            lines.append(
                Line(
                    content=raw,
                    origin=_EOFNL_ORIGIN.get(last_origin, LineOrigin.CONTEXT_EOFNL),
                    old_lineno=-1,
                    new_lineno=-1,
                    content_offset=cursor.offset,
                )
            )
            cursor.advance_line()
            continue
        else:
            markers = raw[:parents]
            if len(markers) != parents or any(c not in b" +-" for c in markers):
                raise HunkError("invalid hunk", line_no)
            deletion = b"-" in markers
            if deletion:
                in_parent = [c == ord("-") for c in markers]
                in_result = False
                origin = LineOrigin.DELETION
            else:
                in_parent = [c == ord(" ") for c in markers]
                in_result = True
                origin = LineOrigin.CONTEXT if all(in_parent) else LineOrigin.ADDITION

        for idx, present in enumerate(in_parent):
            if present:
                if not old_remaining[idx]:
                    raise HunkLineCountError(_expected(header), line_no)
                old_remaining[idx] -= 1
        if in_result:
            if not new_remaining:
                raise HunkLineCountError(_expected(header), line_no)
            new_remaining -= 1

        lines.append(
            Line(
                content=raw[prefix:],
                origin=origin,
                old_lineno=old_lineno if in_parent[0] else -1,
                new_lineno=new_lineno if in_result else -1,
                content_offset=cursor.offset + prefix,
            )
        )
        last_origin = origin
        cursor.advance_line()

    if any(old_remaining) or new_remaining:
        raise HunkLineCountError(_expected(header), cursor.line_no)

    if cursor.next_is(b"\\") and lines:
        if not lines[-1].content.rstrip(b"\r\n"):
            warnings.append(ParseWarning(NO_NEWLINE_WARNING, cursor.line_no))
        lines.append(
            Line(
                content=cursor.line,
                origin=_EOFNL_ORIGIN.get(last_origin, LineOrigin.CONTEXT_EOFNL),
                old_lineno=-1,
                new_lineno=-1,
                content_offset=cursor.offset,
            )
        )
        cursor.advance_line()

    return lines
