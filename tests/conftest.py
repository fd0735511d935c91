"""Pytest configuration.

This test suite uses PySide6 widgets in multiple modules.

During `--collect-only` (and sometimes during collection/filtering), pytest may
import Qt modules before any fixture creates a `QApplication`, which can produce
Qt warnings (and, on some platforms, an abnormal process exit).

We create a single `QApplication` for the entire session as early as possible
and cleanly shut it down at the end.
"""

from __future__ import annotations

import gc
import os
from concurrent.futures import Future
from typing import Any

import pytest

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""

    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

    # Import lazily so non-Qt environments can still import this conftest.
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP

    app = QApplication.instance()
    if app is None:
        # Keep a strong ref so it isn't GC'd mid-session.
        _APP = QApplication([])
    else:
        _APP = app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering threads at interpreter exit."""

    try:
        from PySide6.QtCore import QEvent
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return

    # Destroy leftover widgets while the application is still alive; letting the
    # interpreter collect them after QApplication is gone can abort at exit.
    for widget in app.topLevelWidgets():
        widget.close()
        widget.deleteLater()
    app.sendPostedEvents(None, QEvent.Type.DeferredDelete)
    gc.collect()
    app.sendPostedEvents(None, QEvent.Type.DeferredDelete)

    # Request shutdown and pump events once so timers/posted events can settle.
    app.quit()
    app.processEvents()


class ManualExecutor:
    """Executor stand-in whose jobs run only when a test says so.

    Completing a job resolves its Future on the calling thread, so loader
    callbacks and signal handlers run synchronously inside the test.
    """

    def __init__(self) -> None:
        self.jobs: list[tuple[Future, Any, tuple, dict]] = []
        self.closed = False

    def submit(self, fn, /, *args, **kwargs):  # noqa: ANN001
        if self.closed:
            raise RuntimeError("cannot schedule new futures after shutdown")
        future: Future = Future()
        self.jobs.append((future, fn, args, kwargs))
        return future

    def pending(self) -> list[int]:
        return [i for i, (fut, *_rest) in enumerate(self.jobs) if not fut.done()]

    def run(self, index: int) -> None:
        future, fn, args, kwargs = self.jobs[index]
        if future.done():
            return
        try:
            result = fn(*args, **kwargs)
        except Exception as e:  # noqa: BLE001
            future.set_exception(e)
            return
        future.set_result(result)

    def run_all(self, *, reverse: bool = False) -> None:
        order = self.pending()
        if reverse:
            order.reverse()
        for index in order:
            self.run(index)

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:  # noqa: ARG002
        self.closed = True
        if cancel_futures:
            for future, *_rest in self.jobs:
                future.cancel()


@pytest.fixture
def manual_executor() -> ManualExecutor:
    return ManualExecutor()


class FakeCodec:
    """Conversion functions for the loader that never touch libvips.

    Converted bytes spell out the request (``b"png:0.50"``) so tests can tell
    which request a published result came from.
    """

    def __init__(self) -> None:
        self.mode = "ok"  # "ok" | "encode_fail" | "decode_fail"
        self.calls: list[Any] = []

    def convert(self, request):  # noqa: ANN001
        from PySide6.QtGui import QImage

        from image_converter.image_engine.models import ConversionOutcome, ConvertedImage

        self.calls.append(request)
        if self.mode == "decode_fail":
            return ConversionOutcome(request, error="bad data", decode_failed=True)
        if self.mode == "encode_fail":
            return ConversionOutcome(request)
        data = f"{request.format}:{request.quality:.2f}".encode()
        preview = QImage(4, 3, QImage.Format.Format_RGB888)
        preview.fill(0)
        return ConversionOutcome(request, converted=ConvertedImage(data, request, 4, 3), preview=preview)

    def preview(self, source):  # noqa: ANN001
        import numpy as np

        if self.mode == "decode_fail":
            return source.source_id, None, "bad data"
        return source.source_id, np.zeros((3, 4, 3), dtype=np.uint8), None


@pytest.fixture
def fake_codec() -> FakeCodec:
    return FakeCodec()


@pytest.fixture
def backend(manual_executor, fake_codec):
    from image_converter.app.backend import ConverterBackend
    from image_converter.image_engine.loader import ConversionLoader

    loader = ConversionLoader(
        convert_fn=fake_codec.convert,
        preview_fn=fake_codec.preview,
        executor=manual_executor,
    )
    be = ConverterBackend(loader=loader)
    yield be
    be.shutdown()
