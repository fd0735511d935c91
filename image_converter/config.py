"""In-code defaults for the converter.

Nothing here is read from or written to disk; every run starts from these values.
"""

from __future__ import annotations

import os

FORMATS: tuple[str, ...] = ("jpeg", "png", "webp", "avif")

ACCEPTED_MIME_TYPES: frozenset[str] = frozenset(f"image/{fmt}" for fmt in FORMATS)

DEFAULT_FORMAT = "jpeg"
DEFAULT_QUALITY = 0.8

QUALITY_MIN = 0.1
QUALITY_MAX = 1.0
QUALITY_STEP = 0.05

ZOOM_MIN = 0.5
ZOOM_MAX = 3.0
ZOOM_STEP = 0.1
ZOOM_DEFAULT = 1.0

SLIDER_DEFAULT = 50.0

# Handle is a 24px circle centred on the divider.
HANDLE_RADIUS = 12

# Encode work is GIL-free inside libvips, so threads are enough.
MAX_WORKERS = max(2, min(4, os.cpu_count() or 2))

EXPORT_BASENAME = "converted"
