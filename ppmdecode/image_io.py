from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Callable, List, Optional, Tuple

from .raster import RasterImage

logger = logging.getLogger(__name__)

WILDCARD = ord("?")


class ImageFormatError(RuntimeError):
    pass


@dataclass(frozen=True)
class ImageFormat:
    name: str
    magic: bytes
    decode: Callable[[BinaryIO], RasterImage]
    decode_config: Callable[[BinaryIO], Any]

    def matches(self, prefix: bytes) -> bool:
        if len(prefix) < len(self.magic):
            return False
        return all(m == WILDCARD or m == b for m, b in zip(self.magic, prefix))


class FormatRegistry:
    """Picks a decoder by comparing the leading bytes of a stream with each
    registered magic. ``?`` in a magic matches any byte.

    Formats are tried in registration order. The leading bytes are read and
    replayed, so the chosen decoder still sees the stream from its first
    byte. Only ``read`` is needed on the stream.
    """

    def __init__(self) -> None:
        self._formats: List[ImageFormat] = []

    @property
    def names(self) -> List[str]:
        return [fmt.name for fmt in self._formats]

    def register_format(
        self,
        name: str,
        magic: bytes,
        decode: Callable[[BinaryIO], RasterImage],
        decode_config: Callable[[BinaryIO], Any],
    ) -> None:
        if not magic:
            raise ValueError("Magic must not be empty")
        if name in self.names:
            raise ValueError(f"Format already registered: {name}")
        self._formats.append(ImageFormat(name, magic, decode, decode_config))
        logger.debug("Registered image format %s with magic %r", name, magic)

    def match(self, prefix: bytes) -> Optional[ImageFormat]:
        for fmt in self._formats:
            if fmt.matches(prefix):
                return fmt
        return None

    def decode(self, stream: BinaryIO) -> Tuple[RasterImage, str]:
        reader, fmt = self._sniff(stream)
        return fmt.decode(reader), fmt.name

    def decode_config(self, stream: BinaryIO) -> Tuple[Any, str]:
        reader, fmt = self._sniff(stream)
        return fmt.decode_config(reader), fmt.name

    def _sniff(self, stream: BinaryIO) -> Tuple["ReplayReader", ImageFormat]:
        size = max((len(fmt.magic) for fmt in self._formats), default=0)
        prefix = bytearray()
        while len(prefix) < size:
            chunk = stream.read(size - len(prefix))
            if not chunk:
                break
            prefix += chunk
        fmt = self.match(bytes(prefix))
        if fmt is None:
            raise ImageFormatError(f"Unknown image format (leading bytes {bytes(prefix)!r})")
        logger.debug("Selected image format %s", fmt.name)
        return ReplayReader(bytes(prefix), stream), fmt


class ReplayReader:
    """Forward-only reader that returns ``prefix`` before reading on from ``stream``."""

    def __init__(self, prefix: bytes, stream: BinaryIO) -> None:
        self._prefix = prefix
        self._stream = stream

    def read(self, size: int = -1) -> bytes:
        if size < 0:
            data = self._prefix + (self._stream.read() or b"")
            self._prefix = b""
            return data
        if self._prefix:
            data = self._prefix[:size]
            self._prefix = self._prefix[size:]
            return data
        return self._stream.read(size) or b""


def load_image(path: str | Path, registry: FormatRegistry) -> RasterImage:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    with open(path, "rb") as stream:
        image, _ = registry.decode(stream)
    return image
