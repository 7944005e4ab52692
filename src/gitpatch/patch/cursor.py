"""Line-oriented read cursor over an immutable patch buffer."""

from __future__ import annotations

from typing import Optional

_WHITESPACE = b" \t\r\v\f"
_DIGITS = b"0123456789abcdef"

# Longest digit run accepted; enough for any signed 64-bit value.
MAX_DIGITS = 19


class ParseCursor:
    """Read position inside a patch buffer.

    ``line`` is the unread part of the current line, up to and including its
    ``\\n`` (the final line of the buffer may lack one). ``line_no`` is
    1-based and counts lines that have been entered.
    """

    def __init__(self, content: bytes) -> None:
        self._content = content
        self._pos = 0
        self._line_end = 0
        self.line_no = 0
        self._load_line()

    def _load_line(self) -> None:
        if self._pos >= len(self._content):
            self._line_end = self._pos
            return
        nl = self._content.find(b"\n", self._pos)
        self._line_end = len(self._content) if nl < 0 else nl + 1
        self.line_no += 1

    # ---- queries ----

    @property
    def line(self) -> bytes:
        return self._content[self._pos:self._line_end]

    @property
    def line_len(self) -> int:
        return self._line_end - self._pos

    @property
    def offset(self) -> int:
        """Absolute byte offset of the cursor in the buffer."""
        return self._pos

    @property
    def remain_len(self) -> int:
        return len(self._content) - self._pos

    @property
    def at_end(self) -> bool:
        return self._pos >= len(self._content)

    def next_is(self, literal: bytes) -> bool:
        return self._content.startswith(literal, self._pos)

    def peek(self) -> Optional[int]:
        if self._pos >= self._line_end:
            return None
        return self._content[self._pos]

    def rest_of_line(self) -> bytes:
        """Unread part of the current line without its line terminator."""
        rest = self.line
        if rest.endswith(b"\n"):
            rest = rest[:-1]
            if rest.endswith(b"\r"):
                rest = rest[:-1]
        return rest

    def following_line(self) -> bytes:
        """The whole line after the current one (empty at end of buffer)."""
        start = self._line_end
        nl = self._content.find(b"\n", start)
        end = len(self._content) if nl < 0 else nl + 1
        return self._content[start:end]

    # ---- movement ----

    def advance_line(self) -> None:
        self._pos = self._line_end
        self._load_line()

    def advance_chars(self, count: int) -> None:
        self._pos = min(self._pos + count, self._line_end)

    def advance_expected(self, literal: bytes) -> bool:
        """Consume *literal* if the line continues with it."""
        if self.line_len < len(literal) or not self.next_is(literal):
            return False
        self._pos += len(literal)
        return True

    def advance_ws(self) -> None:
        while self._pos < self._line_end and self._content[self._pos] in _WHITESPACE:
            self._pos += 1

    def advance_nl(self) -> bool:
        """Consume the line terminator and move to the next line.

        The unterminated final line of the buffer counts as terminated once
        fully consumed.
        """
        rest = self.line
        if rest not in (b"\n", b"\r\n", b""):
            return False
        self.advance_line()
        return True

    def advance_digits(self, base: int = 10) -> Optional[int]:
        """Consume a run of digits in *base* and return its value.

        Returns ``None`` without moving when there are no digits or more than
        ``MAX_DIGITS`` of them.
        """
        valid = _DIGITS[:base]
        end = self._pos
        while end < self._line_end and self._content[end] in valid:
            end += 1
        if end == self._pos or end - self._pos > MAX_DIGITS:
            return None
        value = int(self._content[self._pos:end], base)
        self._pos = end
        return value
