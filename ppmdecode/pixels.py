from __future__ import annotations

from typing import Iterator

from .errors import InvalidDimensions, TruncatedPixelData
from .header import DecodeState


def read_pixels(state: DecodeState, width: int, height: int) -> Iterator[bytes]:
    """Yield ``height`` rows of ``width * 3`` RGB bytes in row-major order."""
    if width < 0 or height < 0:
        raise InvalidDimensions(f"Invalid image size: {width}x{height}", stage="pixels")
    return _read_rows(state, width, height)


def _read_rows(state: DecodeState, width: int, height: int) -> Iterator[bytes]:
    row_length = width * 3
    if row_length == 0:
        return
    for y in range(height):
        row = state.read_exact(row_length)
        if len(row) != row_length:
            raise TruncatedPixelData(
                f"Binary pixel data shorter than expected: row {y} of {height} "
                f"has {len(row)} of {row_length} bytes",
                stage="pixels",
                offset=state.offset,
                at_eof=True,
            )
        yield row
