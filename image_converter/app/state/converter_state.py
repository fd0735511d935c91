from __future__ import annotations

from PySide6.QtCore import Property, QObject, Signal

from image_converter.config import (
    DEFAULT_FORMAT,
    DEFAULT_QUALITY,
    QUALITY_MAX,
    QUALITY_MIN,
    QUALITY_STEP,
)


def infer_default_format(subtype: str) -> str:
    """JPEG sources default to PNG output; every other source defaults to JPEG."""
    s = str(subtype or "").strip().lower()
    if s in ("jpeg", "jpg"):
        return "png"
    return "jpeg"


def snap_quality(value: float) -> float:
    q = min(max(float(value), QUALITY_MIN), QUALITY_MAX)
    return round(round(q / QUALITY_STEP) * QUALITY_STEP, 2)


class ConverterState(QObject):
    """Conversion parameters and the published original/converted results."""

    formatChanged = Signal(str)
    qualityChanged = Signal(float)
    hasSourceChanged = Signal(bool)
    originalUrlChanged = Signal(str)
    convertedUrlChanged = Signal(str)
    originalLabelChanged = Signal(str)
    convertedLabelChanged = Signal(str)
    convertingChanged = Signal(bool)
    previewErrorChanged = Signal(str)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._format = DEFAULT_FORMAT
        self._quality = DEFAULT_QUALITY
        self._has_source = False
        self._original_url = ""
        self._converted_url = ""
        self._original_label = ""
        self._converted_label = ""
        self._converting = False
        self._preview_error = ""

    # ---- read-only properties (mutate via backend) ----
    def _get_format(self) -> str:
        return str(self._format)

    format = Property(str, _get_format, notify=formatChanged)  # type: ignore[arg-type]

    def _get_quality(self) -> float:
        return float(self._quality)

    quality = Property(float, _get_quality, notify=qualityChanged)  # type: ignore[arg-type]

    def _get_has_source(self) -> bool:
        return bool(self._has_source)

    hasSource = Property(bool, _get_has_source, notify=hasSourceChanged)  # type: ignore[arg-type]

    def _get_original_url(self) -> str:
        return str(self._original_url)

    originalUrl = Property(str, _get_original_url, notify=originalUrlChanged)  # type: ignore[arg-type]

    def _get_converted_url(self) -> str:
        return str(self._converted_url)

    convertedUrl = Property(str, _get_converted_url, notify=convertedUrlChanged)  # type: ignore[arg-type]

    def _get_original_label(self) -> str:
        return str(self._original_label)

    originalLabel = Property(str, _get_original_label, notify=originalLabelChanged)  # type: ignore[arg-type]

    def _get_converted_label(self) -> str:
        return str(self._converted_label)

    convertedLabel = Property(str, _get_converted_label, notify=convertedLabelChanged)  # type: ignore[arg-type]

    def _get_converting(self) -> bool:
        return bool(self._converting)

    converting = Property(bool, _get_converting, notify=convertingChanged)  # type: ignore[arg-type]

    def _get_preview_error(self) -> str:
        return str(self._preview_error)

    previewError = Property(str, _get_preview_error, notify=previewErrorChanged)  # type: ignore[arg-type]

    # ---- internal mutation helpers (called by backend) ----
    def _set_format(self, fmt: str) -> None:
        f = str(fmt)
        if f == self._format:
            return
        self._format = f
        self.formatChanged.emit(f)

    def _set_quality(self, value: float) -> None:
        q = float(value)
        if q == self._quality:
            return
        self._quality = q
        self.qualityChanged.emit(q)

    def _set_has_source(self, value: bool) -> None:
        v = bool(value)
        if v == self._has_source:
            return
        self._has_source = v
        self.hasSourceChanged.emit(v)

    def _set_original_url(self, url: str) -> None:
        u = str(url)
        if u == self._original_url:
            return
        self._original_url = u
        self.originalUrlChanged.emit(u)

    def _set_converted_url(self, url: str) -> None:
        u = str(url)
        if u == self._converted_url:
            return
        self._converted_url = u
        self.convertedUrlChanged.emit(u)

    def _set_original_label(self, text: str) -> None:
        t = str(text)
        if t == self._original_label:
            return
        self._original_label = t
        self.originalLabelChanged.emit(t)

    def _set_converted_label(self, text: str) -> None:
        t = str(text)
        if t == self._converted_label:
            return
        self._converted_label = t
        self.convertedLabelChanged.emit(t)

    def _set_converting(self, value: bool) -> None:
        v = bool(value)
        if v == self._converting:
            return
        self._converting = v
        self.convertingChanged.emit(v)

    def _set_preview_error(self, text: str) -> None:
        t = str(text)
        if t == self._preview_error:
            return
        self._preview_error = t
        self.previewErrorChanged.emit(t)
