from __future__ import annotations

from typing import Any

from PySide6.QtCore import Property, QObject, Signal, Slot
from PySide6.QtGui import QImage

from image_converter.app.resources import ROLE_CONVERTED, ROLE_ORIGINAL, BlobRegistry
from image_converter.app.state.converter_state import ConverterState, infer_default_format, snap_quality
from image_converter.app.state.slider_state import SliderState
from image_converter.app.state.viewer_state import ViewerState
from image_converter.config import ACCEPTED_MIME_TYPES, FORMATS
from image_converter.formatting import format_label
from image_converter.image_engine.loader import ConversionLoader
from image_converter.image_engine.metrics import metrics
from image_converter.image_engine.models import ConversionOutcome, ConvertedImage, SourceImage
from image_converter.logger import get_logger
from image_converter.ops.file_operations import export_filename, write_export

_logger = get_logger("backend")

CANNOT_PREVIEW = "Cannot preview this image"


class ConverterBackend(QObject):
    """Single command entry for the converter view.

    View → Python: backend.dispatch(cmd, payload)
    Python → View: backend.event(dict)
    Bindings: backend.converter / backend.viewer / backend.slider
    """

    # QObject already has an .event() handler method, so we must not shadow it.
    event_ = Signal(object, name="event")

    def __init__(
        self,
        loader: ConversionLoader | None = None,
        registry: BlobRegistry | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)

        self._loader = loader or ConversionLoader(parent=self)
        self._registry = registry or BlobRegistry()

        self._converter = ConverterState(self)
        self._viewer = ViewerState(self)
        self._slider = SliderState(self)

        self._source: SourceImage | None = None
        self._converted: ConvertedImage | None = None

        self._loader.conversion_finished.connect(self._on_conversion_finished)
        self._loader.source_decoded.connect(self._on_source_decoded)
        self._refresh_placeholder_label()

    # ---- expose state objects ----
    def _get_converter(self) -> QObject:
        return self._converter

    converter = Property(QObject, _get_converter, constant=True)  # type: ignore[arg-type]

    def _get_viewer(self) -> QObject:
        return self._viewer

    viewer = Property(QObject, _get_viewer, constant=True)  # type: ignore[arg-type]

    def _get_slider(self) -> QObject:
        return self._slider

    slider = Property(QObject, _get_slider, constant=True)  # type: ignore[arg-type]

    @property
    def registry(self) -> BlobRegistry:
        return self._registry

    @property
    def loader(self) -> ConversionLoader:
        return self._loader

    @property
    def source(self) -> SourceImage | None:
        return self._source

    @property
    def converted(self) -> ConvertedImage | None:
        return self._converted

    # ---- command entry ----
    @Slot(str, "QVariant")  # type: ignore[call-overload]
    def dispatch(self, cmd: str, payload: object | None = None) -> None:  # noqa: PLR0911
        command = str(cmd or "").strip()
        if not command:
            self._emit_event("error", "error", "Empty cmd")
            return

        if command == "loadImage":
            data = _get_payload_value(payload, "data", default=b"")
            mime = str(_get_payload_value(payload, "mimeType", default=""))
            self.load_source(bytes(data or b""), mime)
            return

        if command == "setFormat":
            self._cmd_set_format(str(_get_payload_value(payload, "value", default="")))
            return

        if command == "setQuality":
            value = _get_payload_value(payload, "value", default=self._converter._get_quality())
            try:
                quality = float(value)
            except (TypeError, ValueError):
                self._emit_event("error", "warning", f"Invalid quality: {value!r}")
                return
            self._cmd_set_quality(quality)
            return

        if command == "zoomIn":
            self._viewer.zoom_in()
            return

        if command == "zoomOut":
            self._viewer.zoom_out()
            return

        if command == "zoomFit":
            self._viewer.zoom_fit()
            return

        if command == "reset":
            self._cmd_reset()
            return

        if command == "exportConverted":
            self._cmd_export_converted(str(_get_payload_value(payload, "path", default="")))
            return

        self._emit_event("error", "warning", f"Unknown cmd: {command}")

    # ---- ingestion ----
    def load_source(self, data: bytes, mime_type: str) -> bool:
        """Replace the current source and start converting it."""
        mime = str(mime_type or "").strip().lower()
        if mime not in ACCEPTED_MIME_TYPES:
            self._emit_event("unsupportedType", "warning", f"Unsupported image type: {mime or 'unknown'}")
            return False
        if not data:
            self._emit_event("emptyImage", "warning", "Image is empty")
            return False

        source = SourceImage(data=bytes(data), mime_type=mime)
        _logger.info("load source: id=%s type=%s size=%s", source.source_id, mime, source.size)

        # The previous original is no longer valid for the new source.
        self._registry.clear(ROLE_ORIGINAL, self._converter._set_original_url)
        self._source = source
        self._converter._set_preview_error("")
        self._converter._set_has_source(True)
        self._converter._set_original_label(format_label("Original", source.subtype, source.size))

        fmt = infer_default_format(source.subtype)
        self._converter._set_format(fmt)
        self._refresh_placeholder_label()
        self._loader.request_source_preview(source)
        self._request_conversion(fmt, self._converter._get_quality())
        return True

    # ---- parameter commands ----
    def _cmd_set_format(self, fmt: str) -> None:
        f = fmt.strip().lower()
        if f not in FORMATS:
            self._emit_event("error", "warning", f"Unsupported format: {fmt}")
            return
        self._converter._set_format(f)
        self._refresh_placeholder_label()
        if self._source is not None:
            self._request_conversion(f, self._converter._get_quality())

    def _cmd_set_quality(self, value: float) -> None:
        q = snap_quality(value)
        self._converter._set_quality(q)
        if self._source is not None:
            self._request_conversion(self._converter._get_format(), q)

    def _request_conversion(self, fmt: str, quality: float) -> None:
        # Parameters travel with the request; completion never reads live state.
        source = self._source
        if source is None:
            return
        self._converter._set_converting(True)
        request = self._loader.request_conversion(source, fmt, quality)
        if request is None and not self._loader.has_pending():
            self._converter._set_converting(False)

    # ---- engine callbacks ----
    @Slot(object)
    def _on_conversion_finished(self, outcome: ConversionOutcome) -> None:
        if not self._loader.is_latest(outcome.seq):
            metrics.inc("conversion.stale_dropped")
            _logger.debug("outcome stale: id=%s latest=%s", outcome.seq, self._loader.latest_id)
            return
        source = self._source
        if source is None or outcome.request.source.source_id != source.source_id:
            _logger.debug("outcome for replaced source dropped: id=%s", outcome.seq)
            return

        self._converter._set_converting(False)

        if outcome.decode_failed:
            self._enter_cannot_preview(outcome.error)
            return

        converted = outcome.converted
        if converted is None:
            # Keep the last good conversion on screen.
            reason = outcome.error or "encoder produced no data"
            _logger.warning("conversion failed: format=%s quality=%s: %s", outcome.request.format, outcome.request.quality, reason)
            self._emit_event(
                "conversionFailed",
                "warning",
                f"Could not convert to {outcome.request.format.upper()}: {reason}",
            )
            return

        self._publish_converted(converted, outcome.preview)
        metrics.inc("conversion.applied")

    def _publish_converted(self, converted: ConvertedImage, preview: QImage | None) -> None:
        self._converted = converted
        self._registry.replace(ROLE_CONVERTED, converted.data, preview, self._converter._set_converted_url)
        self._converter._set_converted_label(format_label("Converted", converted.format, converted.size))
        _logger.debug(
            "converted published: id=%s format=%s quality=%.2f size=%s",
            converted.request.seq,
            converted.format,
            converted.request.quality,
            converted.size,
        )

    @Slot(int, object, object)
    def _on_source_decoded(self, source_id: int, image: object, error: object) -> None:
        source = self._source
        if source is None or source.source_id != source_id:
            _logger.debug("source preview for replaced source dropped: id=%s", source_id)
            return
        if error is not None or not isinstance(image, QImage) or image.isNull():
            self._enter_cannot_preview(str(error) if error else None)
            return
        self._registry.replace(ROLE_ORIGINAL, source.data, image, self._converter._set_original_url)

    def _enter_cannot_preview(self, reason: str | None) -> None:
        if self._converter._get_preview_error():
            return
        _logger.warning("cannot preview source: %s", reason)
        self._converter._set_preview_error(CANNOT_PREVIEW)
        self._converter._set_converting(False)
        source = self._source
        # A conversion of some other image must not sit next to this one.
        if self._converted is not None and (
            source is None or self._converted.request.source.source_id != source.source_id
        ):
            self._drop_converted()
        self._emit_event("cannotPreview", "error", CANNOT_PREVIEW)

    def _drop_converted(self) -> None:
        self._converted = None
        self._registry.clear(ROLE_CONVERTED, self._converter._set_converted_url)
        self._refresh_placeholder_label()

    def _refresh_placeholder_label(self) -> None:
        # Before the first successful conversion the label shows the selection.
        if self._converted is None:
            self._converter._set_converted_label(format_label("Converted", self._converter._get_format(), 0))

    # ---- reset / export ----
    def _cmd_reset(self) -> None:
        self._loader.invalidate()
        self._source = None
        self._registry.clear(ROLE_ORIGINAL, self._converter._set_original_url)
        self._drop_converted()
        self._registry.release_all()
        self._converter._set_has_source(False)
        self._converter._set_converting(False)
        self._converter._set_preview_error("")
        self._converter._set_original_label("")
        self._viewer.zoom_fit()
        self._slider.reset()
        _logger.info("reset")

    def download_filename(self) -> str:
        return export_filename(self._converter._get_format())

    def _cmd_export_converted(self, path: str) -> None:
        converted = self._converted
        if converted is None:
            self._emit_event("nothingToExport", "warning", "No converted image to export")
            return
        if not path:
            self._emit_event("error", "warning", "No export path given")
            return
        try:
            written = write_export(path, converted.data)
        except OSError as e:
            _logger.error("export failed: %s", e)
            self._emit_event("exportFailed", "error", f"Export failed: {e}")
            return
        self._emit_event("exported", "info", f"Saved {written.name}")

    def shutdown(self) -> None:
        _logger.debug(
            "shutdown: applied=%s stale=%s mean_s=%s",
            metrics.count("conversion.applied"),
            metrics.count("conversion.stale_dropped"),
            metrics.mean("conversion.duration"),
        )
        self._registry.release_all()
        self._loader.shutdown()

    def _emit_event(self, name: str, level: str, message: str) -> None:
        self.event_.emit({"type": "event", "name": name, "level": level, "message": message})


def _get_payload_value(payload: object | None, key: str, *, default: Any) -> Any:
    """Extract a value from a command payload.

    Supports dict-like payloads and None; anything else yields `default`.
    """

    if payload is None:
        return default

    if isinstance(payload, dict):
        return payload.get(key, default)

    return default
