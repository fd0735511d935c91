"""Image Engine - raster conversion layer.

This package provides the byte-level work behind the converter:
- Value objects and errors (models)
- pyvips decode/re-encode (codec)
- QImage previews for the view (preview)
- Background scheduling with stale-result dropping (loader)

Usage:
    from image_converter.image_engine import ConversionLoader

    loader = ConversionLoader()
    loader.conversion_finished.connect(on_outcome)
    loader.request_conversion(source, "webp", 0.8)
"""

try:
    from .loader import ConversionLoader
except ImportError:  # pragma: no cover - allow importing submodules without PySide6 in tests
    ConversionLoader = None

__all__ = ["ConversionLoader"]
