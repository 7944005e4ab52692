"""Binary sections — ``GIT binary patch`` payloads and ``Binary files ... differ``.

A payload block is a ``literal <size>`` or ``delta <size>`` line followed by
base-85 data lines and a blank line. Each data line starts with a length
character (``A``-``Z`` for 1-26 bytes, ``a``-``z`` for 27-52) and carries
``ceil(n / 4) * 5`` base-85 characters. The decoded stream is zlib-deflated;
``<size>`` is its inflated length.
"""

from __future__ import annotations

import base64
import zlib
from typing import List, Optional, Tuple

from gitpatch.patch.cursor import ParseCursor
from gitpatch.patch.errors import BinaryDataError, PathMismatchError
from gitpatch.patch.models import BinaryKind, BinaryPayload
from gitpatch.patch.quoting import quote_path

BYTES_PER_LINE = 52


def _decoded_length(c: int) -> int:
    if ord("A") <= c <= ord("Z"):
        return c - ord("A") + 1
    if ord("a") <= c <= ord("z"):
        return c - ord("a") + 27
    return 0


def _length_char(n: int) -> str:
    return chr(ord("A") + n - 1) if n <= 26 else chr(ord("a") + n - 27)


def decode_binary_block(cursor: ParseCursor) -> BinaryPayload:
    """Decode one ``literal``/``delta`` block and leave the cursor on its blank line."""
    line_no = cursor.line_no
    if cursor.advance_expected(b"literal "):
        kind = BinaryKind.LITERAL
    elif cursor.advance_expected(b"delta "):
        kind = BinaryKind.DELTA
    else:
        raise BinaryDataError("unknown binary delta type", line_no)

    length = cursor.advance_digits(10)
    if length is None or not cursor.advance_nl():
        raise BinaryDataError("invalid binary size", line_no)

    chunks: List[bytes] = []
    while not cursor.at_end and cursor.line not in (b"\n", b"\r\n"):
        line_no = cursor.line_no
        data = cursor.rest_of_line()
        decoded_len = _decoded_length(data[0]) if data else 0
        if not decoded_len:
            raise BinaryDataError("invalid binary length", line_no)

        encoded_len = (decoded_len + 3) // 4 * 5
        encoded = data[1:]
        if len(encoded) < encoded_len:
            raise BinaryDataError("truncated binary data", line_no)
        if len(encoded) > encoded_len:
            raise BinaryDataError("trailing data", line_no)

        try:
            decoded = base64.b85decode(encoded)
        except ValueError as exc:
            raise BinaryDataError("invalid binary data", line_no) from exc
        chunks.append(decoded[:decoded_len])
        cursor.advance_line()

    try:
        inflated = zlib.decompress(b"".join(chunks))
    except zlib.error as exc:
        raise BinaryDataError("corrupt binary data", line_no) from exc

    if len(inflated) != length:
        raise BinaryDataError(
            f"binary data length mismatch, expected {length} bytes but decoded {len(inflated)}",
            line_no,
        )
    return BinaryPayload(kind=kind, length=length, data=inflated)


def encode_binary_block(data: bytes, kind: BinaryKind = BinaryKind.LITERAL) -> bytes:
    """Render *data* as a ``literal``/``delta`` block, trailing blank line excluded."""
    compressed = zlib.compress(data)
    out = [f"{kind.value} {len(data)}\n".encode("ascii")]
    for start in range(0, len(compressed), BYTES_PER_LINE):
        chunk = compressed[start:start + BYTES_PER_LINE]
        out.append(_length_char(len(chunk)).encode("ascii") + base64.b85encode(chunk, pad=True) + b"\n")
    return b"".join(out)


def parse_binary_patch(cursor: ParseCursor) -> Tuple[BinaryPayload, BinaryPayload]:
    """Parse a ``GIT binary patch`` section. Returns ``(old, new)`` payloads.

    The patch lists the new image (old -> new) first, then the old image
    (new -> old) used for reverse application.
    """
    if not cursor.advance_expected(b"GIT binary patch") or not cursor.advance_nl():
        raise BinaryDataError("corrupt git binary header", cursor.line_no)

    new = decode_binary_block(cursor)
    if not cursor.advance_nl():
        raise BinaryDataError("corrupt git binary separator", cursor.line_no)

    old = decode_binary_block(cursor)
    if not cursor.advance_nl():
        raise BinaryDataError("corrupt git binary patch separator", cursor.line_no)
    return old, new


def _renderings(path: str) -> List[str]:
    quoted = quote_path(path)
    return [path] if quoted == path else [path, quoted]


def parse_binary_nodata(
    cursor: ParseCursor, old_label: Optional[str], new_label: Optional[str]
) -> None:
    """Check a ``Binary files <old> and <new> differ`` line against the header paths."""
    line_no = cursor.line_no
    if old_label is None or new_label is None:
        raise PathMismatchError("corrupt binary data without paths", line_no)

    line = cursor.rest_of_line()
    expected = {
        f"Binary files {old} and {new} differ".encode("utf-8", "surrogateescape")
        for old in _renderings(old_label)
        for new in _renderings(new_label)
    }
    if line not in expected:
        raise PathMismatchError("corrupt binary data without paths", line_no)
    cursor.advance_line()
