from __future__ import annotations


class PPMFormatError(RuntimeError):
    """Base class for every decode failure.

    ``stage`` names the pipeline stage that stopped ("magic", "comments",
    "dimensions", "maxval" or "pixels"), ``offset`` is the number of bytes
    consumed from the stream when the problem was found, and ``at_eof`` is
    true when the stream simply ran out rather than holding bad content.
    """

    def __init__(
        self,
        message: str,
        stage: str | None = None,
        offset: int | None = None,
        at_eof: bool = False,
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.offset = offset
        self.at_eof = at_eof

    def __str__(self) -> str:
        message = super().__str__()
        if self.stage is None:
            return message
        if self.offset is None:
            return f"{self.stage}: {message}"
        return f"{self.stage} (byte {self.offset}): {message}"


class InvalidMagic(PPMFormatError):
    pass


class BadDimensions(PPMFormatError):
    pass


class NegativeDimension(PPMFormatError):
    pass


class InvalidDimensions(PPMFormatError):
    pass


class BadMaxVal(PPMFormatError):
    pass


class UnsupportedMaxVal(PPMFormatError):
    pass


class TruncatedPixelData(PPMFormatError):
    pass


class UnexpectedEndOfInput(PPMFormatError):
    pass
