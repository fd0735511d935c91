"""Value objects passed between the converter state and the conversion engine."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any

from image_converter.config import FORMATS

_source_ids = itertools.count(1)


class ConversionError(Exception):
    """Base error for the conversion engine."""


class DecodeError(ConversionError):
    """Source bytes could not be decoded into pixels."""


class UnsupportedFormatError(ConversionError, ValueError):
    """Target format is not one of the supported encoders."""


def check_format(fmt: str) -> str:
    f = str(fmt or "").strip().lower()
    if f == "jpg":
        f = "jpeg"
    if f not in FORMATS:
        raise UnsupportedFormatError(f"unsupported format: {fmt!r}")
    return f


@dataclass(frozen=True)
class SourceImage:
    data: bytes = field(repr=False)
    mime_type: str
    source_id: int = field(default_factory=lambda: next(_source_ids))

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def subtype(self) -> str:
        return self.mime_type.split("/", 1)[-1].lower()


@dataclass(frozen=True)
class ConversionRequest:
    source: SourceImage
    format: str
    quality: float
    seq: int = 0

    def params(self) -> tuple[int, str, float]:
        return self.source.source_id, self.format, self.quality


@dataclass(frozen=True)
class ConvertedImage:
    data: bytes = field(repr=False)
    request: ConversionRequest
    width: int
    height: int

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def format(self) -> str:
        return self.request.format


@dataclass
class ConversionOutcome:
    """Result of one background conversion.

    Exactly one of `converted` / `error` is set, except when the encoder produced
    nothing, in which case both are None. `preview` is a QImage of the encoded
    output (decoded back so the view shows the real compression artifacts).
    """

    request: ConversionRequest
    converted: ConvertedImage | None = None
    preview: Any = None
    error: str | None = None
    decode_failed: bool = False

    @property
    def seq(self) -> int:
        return self.request.seq
