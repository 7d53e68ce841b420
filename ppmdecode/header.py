from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO

from .errors import (
    BadDimensions,
    BadMaxVal,
    InvalidMagic,
    NegativeDimension,
    PPMFormatError,
    UnsupportedMaxVal,
)

MAGIC = b"P6\n"
MAX_VALUE = 255
MAX_DIGITS = 10
READ_CHUNK = 1 << 16

_BLANKS = (b" ", b"\t", b"\r")


@dataclass(frozen=True)
class HeaderInfo:
    width: int
    height: int
    maxval: int = MAX_VALUE
    magic: str = "P6"


class DecodeState:
    """Forward-only cursor over a caller-owned binary stream.

    Holds at most one byte of look-ahead so the lexer can stop in front of a
    byte without giving it back to the stream. ``offset`` counts consumed
    bytes and is only used for error context.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._pending = b""
        self.offset = 0

    def peek(self) -> bytes:
        if not self._pending:
            self._pending = self._stream.read(1) or b""
        return self._pending

    def read_byte(self) -> bytes:
        return self.read_exact(1)

    def read_exact(self, size: int) -> bytes:
        """Read ``size`` bytes, or fewer only when the stream is exhausted."""
        data = bytearray()
        if size > 0 and self._pending:
            data += self._pending
            self._pending = b""
        while len(data) < size:
            chunk = self._stream.read(min(size - len(data), READ_CHUNK))
            if not chunk:
                break
            data += chunk
        self.offset += len(data)
        return bytes(data)


def read_magic(state: DecodeState) -> None:
    # One exact read: a shorter or longer first line never matches.
    magic = state.read_exact(len(MAGIC))
    if magic != MAGIC:
        at_eof = len(magic) < len(MAGIC) and MAGIC.startswith(magic)
        raise InvalidMagic(
            f"expected {MAGIC!r}, got {magic!r}",
            stage="magic",
            offset=state.offset,
            at_eof=at_eof,
        )


def skip_comments(state: DecodeState) -> None:
    while state.peek() == b"#":
        while True:
            ch = state.read_byte()
            if not ch or ch == b"\n":
                break


def read_dimensions(state: DecodeState) -> tuple[int, int]:
    width = _scan_int(state, "dimensions", BadDimensions)
    height = _scan_int(state, "dimensions", BadDimensions)
    _expect_newline(state, "dimensions", BadDimensions)
    if width < 0 or height < 0:
        raise NegativeDimension(
            f"dimensions out of range: {width}x{height}",
            stage="dimensions",
            offset=state.offset,
        )
    return width, height


def read_maxval(state: DecodeState) -> int:
    maxval = _scan_int(state, "maxval", BadMaxVal)
    _expect_newline(state, "maxval", BadMaxVal)
    if maxval != MAX_VALUE:
        raise UnsupportedMaxVal(
            f"only maxval {MAX_VALUE} is supported, got {maxval}",
            stage="maxval",
            offset=state.offset,
        )
    return maxval


def read_header(state: DecodeState) -> HeaderInfo:
    read_magic(state)
    skip_comments(state)
    width, height = read_dimensions(state)
    maxval = read_maxval(state)
    return HeaderInfo(width, height, maxval)


def _skip_blanks(state: DecodeState) -> None:
    while state.peek() in _BLANKS:
        state.read_byte()


def _scan_int(state: DecodeState, stage: str, error: type[PPMFormatError]) -> int:
    _skip_blanks(state)
    sign = 1
    if state.peek() in (b"+", b"-"):
        if state.read_byte() == b"-":
            sign = -1
    digits = bytearray()
    while True:
        ch = state.peek()
        if not ch or not ch.isdigit():
            break
        digits += state.read_byte()
        if len(digits) > MAX_DIGITS:
            raise error(
                f"integer longer than {MAX_DIGITS} digits",
                stage=stage,
                offset=state.offset,
            )
    if not digits:
        found = state.peek()
        raise error(
            f"expected a decimal integer, got {found!r}",
            stage=stage,
            offset=state.offset,
            at_eof=not found,
        )
    return sign * int(digits)


def _expect_newline(state: DecodeState, stage: str, error: type[PPMFormatError]) -> None:
    # End of stream terminates the last line as well as "\n" does.
    _skip_blanks(state)
    ch = state.read_byte()
    if ch and ch != b"\n":
        raise error(
            f"expected end of line, got {ch!r}",
            stage=stage,
            offset=state.offset,
        )
