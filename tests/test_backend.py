from __future__ import annotations

from pathlib import Path

import pytest

PySide6 = pytest.importorskip("PySide6")  # noqa: F401

from image_converter.app.backend import CANNOT_PREVIEW
from image_converter.image_engine.metrics import metrics


def _events(backend) -> list[dict]:
    received: list[dict] = []
    backend.event_.connect(received.append)
    return received


def _names(events: list[dict]) -> list[str]:
    return [e.get("name") for e in events]


def test_load_jpeg_defaults_to_png(backend) -> None:
    assert backend.load_source(b"jpeg-bytes", "image/jpeg")
    assert backend.converter.format == "png"
    assert backend.converter.hasSource
    assert backend.converter.originalLabel == "Original: JPEG - 10 B"


@pytest.mark.parametrize("mime", ["image/png", "image/webp", "image/avif"])
def test_load_non_jpeg_defaults_to_jpeg(backend, mime: str) -> None:
    backend.load_source(b"bytes", mime)
    assert backend.converter.format == "jpeg"


def test_load_starts_conversion_and_publishes_result(backend, manual_executor) -> None:
    backend.load_source(b"png-bytes", "image/png")
    assert backend.converter.converting

    manual_executor.run_all()

    assert not backend.converter.converting
    converted = backend.converted
    assert converted is not None
    assert converted.data == b"jpeg:0.80"
    assert backend.converter.convertedLabel == "Converted: JPEG - 9 B"
    assert backend.registry.is_live(backend.converter.convertedUrl)
    assert backend.registry.is_live(backend.converter.originalUrl)


def test_last_requested_conversion_wins_when_results_arrive_in_reverse(backend, manual_executor) -> None:
    metrics.reset()
    backend.load_source(b"png-bytes", "image/png")
    backend.dispatch("setQuality", {"value": 0.9})
    backend.dispatch("setFormat", {"value": "png"})
    backend.dispatch("setQuality", {"value": 0.5})

    manual_executor.run_all(reverse=True)

    converted = backend.converted
    assert converted is not None
    assert converted.format == "png"
    assert converted.request.quality == 0.5
    assert backend.converter.format == "png"
    assert backend.converter.quality == 0.5
    assert backend.converter.convertedLabel == "Converted: PNG - 8 B"
    assert not backend.converter.converting
    assert metrics.count("conversion.stale_dropped") == 3


def test_last_requested_conversion_wins_in_submission_order(backend, manual_executor) -> None:
    backend.load_source(b"png-bytes", "image/png")
    backend.dispatch("setQuality", {"value": 0.9})
    backend.dispatch("setFormat", {"value": "png"})
    backend.dispatch("setQuality", {"value": 0.5})

    manual_executor.run_all()

    assert backend.converted.data == b"png:0.50"


def test_only_one_converted_locator_stays_live(backend, manual_executor) -> None:
    backend.load_source(b"webp-bytes", "image/webp")
    manual_executor.run_all()
    for fmt in ("png", "webp", "avif", "jpeg", "png"):
        backend.dispatch("setFormat", {"value": fmt})
        manual_executor.run_all()

    registry = backend.registry
    # One original plus one converted.
    assert registry.live_count() == 2
    assert registry.is_live(backend.converter.convertedUrl)
    assert registry.is_live(backend.converter.originalUrl)
    assert backend.converted.data == b"png:0.80"


def test_encode_failure_keeps_previous_result(backend, manual_executor, fake_codec) -> None:
    backend.load_source(b"png-bytes", "image/png")
    manual_executor.run_all()
    before = backend.converted
    url = backend.converter.convertedUrl
    label = backend.converter.convertedLabel

    events = _events(backend)
    fake_codec.mode = "encode_fail"
    backend.dispatch("setFormat", {"value": "avif"})
    manual_executor.run_all()

    assert backend.converted is before
    assert backend.converter.convertedUrl == url
    assert backend.registry.is_live(url)
    assert backend.converter.convertedLabel == label
    assert not backend.converter.converting
    assert "conversionFailed" in _names(events)


def test_undecodable_source_shows_cannot_preview(backend, manual_executor, fake_codec) -> None:
    events = _events(backend)
    fake_codec.mode = "decode_fail"
    backend.load_source(b"garbage", "image/png")
    manual_executor.run_all()

    assert backend.converter.previewError == CANNOT_PREVIEW
    assert backend.converted is None
    assert backend.converter.convertedUrl == ""
    assert not backend.converter.converting
    assert _names(events).count("cannotPreview") == 1

    # A good image afterwards clears the state.
    fake_codec.mode = "ok"
    backend.load_source(b"png-bytes", "image/png")
    manual_executor.run_all()
    assert backend.converter.previewError == ""
    assert backend.converted is not None


def test_undecodable_source_drops_conversion_of_previous_image(backend, manual_executor, fake_codec) -> None:
    backend.load_source(b"png-bytes", "image/png")
    manual_executor.run_all()
    assert backend.converted is not None

    fake_codec.mode = "decode_fail"
    backend.load_source(b"garbage", "image/webp")
    manual_executor.run_all()

    assert backend.converted is None
    assert backend.converter.convertedUrl == ""
    assert backend.registry.live_count() == 0


@pytest.mark.parametrize(
    ("mime", "data", "name"),
    [
        ("image/gif", b"GIF89a", "unsupportedType"),
        ("text/plain", b"hello", "unsupportedType"),
        ("", b"bytes", "unsupportedType"),
        ("image/png", b"", "emptyImage"),
    ],
)
def test_rejected_inputs_change_nothing(backend, manual_executor, mime: str, data: bytes, name: str) -> None:
    events = _events(backend)
    assert not backend.load_source(data, mime)
    assert not backend.converter.hasSource
    assert manual_executor.jobs == []
    assert _names(events) == [name]


def test_load_image_command(backend, manual_executor) -> None:
    backend.dispatch("loadImage", {"data": b"avif-bytes", "mimeType": "image/avif"})
    assert backend.converter.hasSource
    assert backend.source.mime_type == "image/avif"
    assert len(manual_executor.jobs) == 2


def test_quality_is_snapped_and_clamped(backend) -> None:
    backend.dispatch("setQuality", {"value": 0.93})
    assert backend.converter.quality == pytest.approx(0.95)
    backend.dispatch("setQuality", {"value": 5})
    assert backend.converter.quality == pytest.approx(1.0)
    backend.dispatch("setQuality", {"value": 0})
    assert backend.converter.quality == pytest.approx(0.1)


def test_unknown_format_is_ignored(backend) -> None:
    events = _events(backend)
    backend.dispatch("setFormat", {"value": "gif"})
    assert backend.converter.format == "jpeg"
    assert events[-1]["level"] == "warning"


def test_parameter_changes_without_source_do_not_convert(backend, manual_executor) -> None:
    backend.dispatch("setFormat", {"value": "webp"})
    backend.dispatch("setQuality", {"value": 0.4})
    assert manual_executor.jobs == []
    assert backend.converter.convertedLabel == "Converted: WEBP - 0 B"


def test_unknown_and_empty_commands_emit_events(backend) -> None:
    events = _events(backend)
    backend.dispatch("")
    backend.dispatch("explode")
    assert [e["level"] for e in events] == ["error", "warning"]


def test_zoom_commands(backend) -> None:
    backend.dispatch("zoomIn")
    backend.dispatch("zoomIn")
    assert backend.viewer.zoom == pytest.approx(1.2)
    backend.dispatch("zoomFit")
    assert backend.viewer.zoom == pytest.approx(1.0)
    for _ in range(10):
        backend.dispatch("zoomOut")
    assert backend.viewer.zoom == pytest.approx(0.5)


def test_reset_returns_to_initial_state(backend, manual_executor) -> None:
    backend.load_source(b"png-bytes", "image/png")
    manual_executor.run_all()
    backend.dispatch("zoomIn")
    backend.slider.press(True)
    backend.slider.move(10.0, 0.0, 100.0)

    backend.dispatch("reset")

    assert backend.source is None
    assert backend.converted is None
    assert not backend.converter.hasSource
    assert backend.converter.originalUrl == ""
    assert backend.converter.convertedUrl == ""
    assert backend.registry.live_count() == 0
    assert backend.viewer.zoom == pytest.approx(1.0)
    assert backend.slider.position == pytest.approx(50.0)
    assert not backend.slider.dragging


def test_results_arriving_after_reset_are_dropped(backend, manual_executor) -> None:
    backend.load_source(b"png-bytes", "image/png")
    backend.dispatch("reset")
    manual_executor.run_all()

    assert backend.converted is None
    assert backend.converter.originalUrl == ""
    assert backend.registry.live_count() == 0


def test_export_writes_converted_bytes(backend, manual_executor, tmp_path: Path) -> None:
    backend.load_source(b"jpeg-bytes", "image/jpeg")
    manual_executor.run_all()
    assert backend.download_filename() == "converted.png"

    events = _events(backend)
    target = tmp_path / backend.download_filename()
    backend.dispatch("exportConverted", {"path": str(target)})

    assert target.read_bytes() == b"png:0.80"
    assert _names(events) == ["exported"]


def test_export_without_result(backend, tmp_path: Path) -> None:
    events = _events(backend)
    backend.dispatch("exportConverted", {"path": str(tmp_path / "converted.jpeg")})
    assert _names(events) == ["nothingToExport"]
    assert not (tmp_path / "converted.jpeg").exists()


def test_export_to_missing_directory_reports_failure(backend, manual_executor, tmp_path: Path) -> None:
    backend.load_source(b"png-bytes", "image/png")
    manual_executor.run_all()
    events = _events(backend)
    backend.dispatch("exportConverted", {"path": str(tmp_path / "missing" / "converted.jpeg")})
    assert _names(events) == ["exportFailed"]


@pytest.mark.parametrize("value", ["loud", None, [0.5]])
def test_non_numeric_quality_is_rejected_with_warning(backend, manual_executor, value) -> None:
    backend.load_source(b"png-bytes", "image/png")
    jobs_before = len(manual_executor.jobs)
    events = _events(backend)

    backend.dispatch("setQuality", {"value": value})

    assert backend.converter.quality == pytest.approx(0.8)
    assert len(manual_executor.jobs) == jobs_before
    assert [(e["name"], e["level"]) for e in events] == [("error", "warning")]
