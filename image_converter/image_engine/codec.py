"""Raster decode/re-encode using pyvips.

The engine only computes bytes. Publishing results for display (locators) is the
caller's job, see `image_converter.app.resources`.
"""

import contextlib
from typing import Any

import numpy as np

from image_converter.config import QUALITY_MAX, QUALITY_MIN
from image_converter.image_engine.metrics import metrics
from image_converter.image_engine.models import (
    ConversionOutcome,
    ConversionRequest,
    ConvertedImage,
    DecodeError,
    SourceImage,
    check_format,
)
from image_converter.logger import get_logger

_logger = get_logger("codec")

RGB_CHANNELS = 3

_SAVE_SUFFIX = {
    "jpeg": ".jpg",
    "png": ".png",
    "webp": ".webp",
    "avif": ".avif",
}

_pyvips: Any | None = None


def _get_pyvips_module() -> Any:
    global _pyvips
    if _pyvips is None:
        import pyvips  # type: ignore

        # Configure pyvips caches to avoid memory growth across repeated conversions
        pyvips.cache_set_max(0)
        pyvips.cache_set_max_mem(0)
        pyvips.cache_set_max_files(0)
        _pyvips = pyvips
    return _pyvips


def quality_to_q(quality: float) -> int:
    """Map a 0.1..1.0 quality onto the encoders' 1..100 Q scale."""
    q = min(max(float(quality), QUALITY_MIN), QUALITY_MAX)
    return max(1, min(100, round(q * 100)))


def rasterize(data: bytes) -> Any:
    """Decode bytes into an in-memory pixel surface at intrinsic size."""
    pyvips = _get_pyvips_module()
    try:
        image = pyvips.Image.new_from_buffer(data, "")
        # EXIF orientation is applied the way browsers draw images
        image = image.autorot()
        return image.copy_memory()
    except pyvips.Error as e:
        raise DecodeError(str(e).strip() or "cannot decode image") from e


def encode_surface(image: Any, fmt: str, quality: float) -> bytes | None:
    """Encode a surface. Returns None when the encoder fails or yields nothing."""
    pyvips = _get_pyvips_module()
    fmt = check_format(fmt)
    try:
        with contextlib.suppress(pyvips.Error):
            image = image.colourspace("srgb")
        if image.format != "uchar":
            image = image.cast("uchar")

        if fmt == "png":
            # Lossless: quality does not apply
            buf = image.write_to_buffer(_SAVE_SUFFIX[fmt])
        else:
            if fmt == "jpeg" and image.hasalpha():
                image = image.flatten(background=[0, 0, 0])
            buf = image.write_to_buffer(_SAVE_SUFFIX[fmt], Q=quality_to_q(quality))
    except pyvips.Error as e:
        _logger.warning("encode failed: format=%s quality=%s err=%s", fmt, quality, str(e).strip())
        return None
    if not buf:
        _logger.warning("encode produced no data: format=%s quality=%s", fmt, quality)
        return None
    return bytes(buf)


def convert_image(data: bytes, fmt: str, quality: float) -> bytes | None:
    """Decode `data`, paint it unscaled and re-encode at `fmt`/`quality`.

    Raises DecodeError for undecodable input; encode problems yield None.
    """
    surface = rasterize(data)
    return encode_surface(surface, fmt, quality)


def _surface_to_array(image: Any) -> "np.ndarray":
    pyvips = _get_pyvips_module()
    with contextlib.suppress(pyvips.Error):
        image = image.colourspace("srgb")
    if image.hasalpha():
        image = image.flatten(background=[0, 0, 0])
    if image.bands > RGB_CHANNELS:
        image = image.extract_band(0, n=RGB_CHANNELS)
    elif image.bands < RGB_CHANNELS:
        image = pyvips.Image.bandjoin([image] * RGB_CHANNELS)
    if image.format != "uchar":
        image = image.cast("uchar")

    mem = image.write_to_memory()
    array = np.frombuffer(mem, dtype=np.uint8).reshape(image.height, image.width, image.bands)
    return array.copy()


def decode_to_array(data: bytes) -> "np.ndarray":
    """Decode image bytes into an RGB uint8 array of shape (H, W, 3)."""
    return _surface_to_array(rasterize(data))


def run_source_preview(source: SourceImage) -> tuple[int, "np.ndarray | None", str | None]:
    """Decode the original for display. Returns (source_id, array|None, error|None)."""
    try:
        return source.source_id, decode_to_array(source.data), None
    except DecodeError as e:
        _logger.debug("source decode failed: id=%s err=%s", source.source_id, e)
        return source.source_id, None, str(e)
    except (ImportError, OSError) as e:
        _logger.error("raster backend unavailable: %s", e)
        return source.source_id, None, f"raster backend unavailable: {e}"


def run_conversion(request: ConversionRequest) -> ConversionOutcome:
    """Full background job: convert, then decode the output back for preview."""
    # Imported here so the codec stays importable without Qt.
    from image_converter.image_engine.preview import array_to_qimage  # noqa: PLC0415

    with metrics.timed("conversion.duration"):
        try:
            data = convert_image(request.source.data, request.format, request.quality)
        except DecodeError as e:
            metrics.inc("conversion.decode_failed")
            return ConversionOutcome(request, error=str(e), decode_failed=True)
        except (ImportError, OSError) as e:
            _logger.error("raster backend unavailable: %s", e)
            return ConversionOutcome(request, error=f"raster backend unavailable: {e}")

        if data is None:
            metrics.inc("conversion.encode_failed")
            return ConversionOutcome(request)

        try:
            array = decode_to_array(data)
        except DecodeError as e:
            # Encoder wrote something the decoder cannot read back
            metrics.inc("conversion.encode_failed")
            _logger.warning("encoded output unreadable: format=%s err=%s", request.format, e)
            return ConversionOutcome(request)

    height, width = array.shape[0], array.shape[1]
    converted = ConvertedImage(data=data, request=request, width=width, height=height)
    return ConversionOutcome(request, converted=converted, preview=array_to_qimage(array))
