from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

from .errors import InvalidDimensions

Pixel = Tuple[int, int, int, int]

OPAQUE = 0xFF


@dataclass
class RasterImage:
    """RGBA image backed by a flat bytearray, 4 bytes per pixel, row-major."""

    width: int
    height: int
    pix: bytearray

    @property
    def bounds(self) -> tuple[int, int, int, int]:
        return 0, 0, self.width, self.height

    @property
    def stride(self) -> int:
        return self.width * 4

    def copy(self) -> "RasterImage":
        return RasterImage(self.width, self.height, bytearray(self.pix))

    def pixel_at(self, x: int, y: int) -> Pixel:
        self._validate_coordinates(x, y)
        idx = self._offset(x, y)
        return self.pix[idx], self.pix[idx + 1], self.pix[idx + 2], self.pix[idx + 3]

    def iter_pixels(self) -> Iterator[Pixel]:
        for i in range(0, len(self.pix), 4):
            yield self.pix[i], self.pix[i + 1], self.pix[i + 2], self.pix[i + 3]

    def to_pillow_image(self):
        from PIL import Image

        return Image.frombytes("RGBA", (self.width, self.height), bytes(self.pix))

    def _validate_coordinates(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError("Pixel coordinates out of bounds")

    def _offset(self, x: int, y: int) -> int:
        return (y * self.width + x) * 4


class ImageBuilder:
    """Fills a zeroed RGBA buffer and hands it out once every slot is set.

    The format has no alpha channel, so every written pixel is opaque.
    """

    def __init__(self, width: int, height: int) -> None:
        if width < 0 or height < 0:
            raise InvalidDimensions(f"Invalid image size: {width}x{height}")
        self.width = width
        self.height = height
        self._pix = bytearray(width * height * 4)
        self._written = bytearray(width * height)
        self._remaining = width * height

    def set_pixel(self, index: int, r: int, g: int, b: int) -> None:
        if not 0 <= index < self.width * self.height:
            raise IndexError(f"Pixel index {index} out of bounds")
        self._mark(index, 1)
        o = index * 4
        self._pix[o] = r
        self._pix[o + 1] = g
        self._pix[o + 2] = b
        self._pix[o + 3] = OPAQUE

    def set_row(self, y: int, rgb: bytes) -> None:
        if not 0 <= y < self.height:
            raise IndexError(f"Row {y} out of bounds")
        if len(rgb) != self.width * 3:
            raise ValueError(f"Row data has {len(rgb)} bytes, expected {self.width * 3}")
        start = y * self.width
        self._mark(start, self.width)
        o = start * 4
        end = o + self.width * 4
        self._pix[o:end:4] = rgb[0::3]
        self._pix[o + 1:end:4] = rgb[1::3]
        self._pix[o + 2:end:4] = rgb[2::3]
        self._pix[o + 3:end:4] = bytes([OPAQUE]) * self.width

    def build(self) -> RasterImage:
        if self._remaining:
            raise ValueError(f"{self._remaining} pixels were never set")
        return RasterImage(self.width, self.height, self._pix)

    def _mark(self, start: int, count: int) -> None:
        span = self._written[start:start + count]
        if any(span):
            raise ValueError(f"Pixel slots starting at {start} were already set")
        self._written[start:start + count] = b"\x01" * count
        self._remaining -= count
