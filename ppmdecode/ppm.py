from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Iterator

from .errors import PPMFormatError, UnexpectedEndOfInput
from .header import MAGIC, DecodeState, read_dimensions, read_header, read_magic, skip_comments
from .pixels import read_pixels
from .raster import ImageBuilder, RasterImage

if TYPE_CHECKING:
    from .image_io import FormatRegistry

FORMAT_NAME = "ppm"
COLOR_MODEL = "RGBA"


@dataclass(frozen=True)
class ImageConfig:
    width: int
    height: int
    color_model: str = COLOR_MODEL


def decode(stream: BinaryIO) -> RasterImage:
    """Decode a binary P6 image from ``stream``.

    The stream is read forward only and is not closed. Running out of input
    inside the header raises UnexpectedEndOfInput. The output buffer is
    allocated only once every pixel row has arrived, so a short stream that
    declares a huge size fails with TruncatedPixelData.
    """
    state = DecodeState(stream)
    with _header_stage():
        header = read_header(state)
    rows = list(read_pixels(state, header.width, header.height))
    builder = ImageBuilder(header.width, header.height)
    for y, row in enumerate(rows):
        builder.set_row(y, row)
    return builder.build()


def decode_config(stream: BinaryIO) -> ImageConfig:
    """Read only the magic, comments and dimensions of a P6 image.

    Running out of input inside the header raises UnexpectedEndOfInput, so a
    caller holding a partial stream can wait for more bytes instead of
    rejecting the file.
    """
    state = DecodeState(stream)
    with _header_stage():
        read_magic(state)
        skip_comments(state)
        width, height = read_dimensions(state)
    return ImageConfig(width, height)


@contextmanager
def _header_stage() -> Iterator[None]:
    try:
        yield
    except PPMFormatError as exc:
        if exc.at_eof:
            raise UnexpectedEndOfInput(
                f"stream ended inside the header ({exc})",
                stage=exc.stage,
                offset=exc.offset,
                at_eof=True,
            ) from exc
        raise


def read_ppm(path: str | Path) -> RasterImage:
    with open(path, "rb") as stream:
        return decode(stream)


def register(registry: "FormatRegistry") -> None:
    registry.register_format(FORMAT_NAME, MAGIC, decode, decode_config)
