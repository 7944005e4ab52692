"""C-style path quoting as git writes it in patch headers."""

from __future__ import annotations

from typing import Optional

from gitpatch.patch.errors import HeaderError

_ESCAPES = {
    ord("a"): 0x07,
    ord("b"): 0x08,
    ord("f"): 0x0C,
    ord("n"): 0x0A,
    ord("r"): 0x0D,
    ord("t"): 0x09,
    ord("v"): 0x0B,
    ord("\\"): ord("\\"),
    ord('"'): ord('"'),
}

_REVERSE_ESCAPES = {value: key for key, value in _ESCAPES.items()}

_OCTAL = b"01234567"


def decode_path(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


def quoted_length(raw: bytes) -> int:
    """Length of the quoted token that *raw* starts with, closing quote included.

    Returns the length of *raw* when the closing quote is missing.
    """
    escaped = False
    for idx in range(1, len(raw)):
        c = raw[idx]
        if escaped:
            escaped = False
        elif c == ord("\\"):
            escaped = True
        elif c == ord('"'):
            return idx + 1
    return len(raw)


def unquote_path(raw: bytes, line_no: Optional[int] = None) -> str:
    """Decode a ``"..."`` path with C escapes (``\\n``, ``\\"``, ``\\303``...)."""
    if len(raw) < 2 or not raw.startswith(b'"') or not raw.endswith(b'"'):
        raise HeaderError("invalid quoted path", line_no)

    body = raw[1:-1]
    out = bytearray()
    idx = 0
    while idx < len(body):
        c = body[idx]
        if c != ord("\\"):
            out.append(c)
            idx += 1
            continue
        if idx + 1 >= len(body):
            raise HeaderError("invalid quoted path", line_no)
        nxt = body[idx + 1]
        if nxt in _ESCAPES:
            out.append(_ESCAPES[nxt])
            idx += 2
        elif nxt in _OCTAL:
            digits = body[idx + 1:idx + 4]
            if len(digits) != 3 or any(d not in _OCTAL for d in digits):
                raise HeaderError("invalid quoted path", line_no)
            value = int(digits, 8)
            if value > 0xFF:
                raise HeaderError("invalid quoted path", line_no)
            out.append(value)
            idx += 4
        else:
            raise HeaderError("invalid quoted path", line_no)
    return decode_path(bytes(out))


def quote_path(path: str) -> str:
    """Quote *path* the way git does, or return it unchanged if no quoting is needed."""
    raw = path.encode("utf-8", "surrogateescape")
    out = []
    needs_quotes = False
    for c in raw:
        if c in _REVERSE_ESCAPES:
            out.append("\\" + chr(_REVERSE_ESCAPES[c]))
            needs_quotes = True
        elif c < 0x20 or c >= 0x7F:
            out.append(f"\\{c:03o}")
            needs_quotes = True
        else:
            out.append(chr(c))
    if not needs_quotes:
        return path
    return '"' + "".join(out) + '"'
