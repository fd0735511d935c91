"""Background conversion loader.

Runs decode/encode jobs on a thread pool and hands results back through Qt
signals. Signals emitted from a worker thread are queued onto the receiver's
thread, so every state change still happens on the GUI thread.

Each conversion request is tagged with a monotonically increasing id. Only the
most recently requested conversion is ever emitted; older completions are
dropped when they arrive (last-requested-wins).
"""

import threading
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import replace
from functools import partial

from PySide6.QtCore import QObject, Signal

from image_converter.config import MAX_WORKERS
from image_converter.image_engine.codec import run_conversion, run_source_preview
from image_converter.image_engine.metrics import metrics
from image_converter.image_engine.models import ConversionOutcome, ConversionRequest, SourceImage
from image_converter.image_engine.preview import array_to_qimage
from image_converter.logger import get_logger

_logger = get_logger("loader")


class ConversionLoader(QObject):
    """Schedules conversions and source previews off the GUI thread.

    `convert_fn` is `(ConversionRequest) -> ConversionOutcome` and `preview_fn` is
    `(SourceImage) -> (source_id, array|None, error|None)`.
    """

    conversion_finished = Signal(object)  # ConversionOutcome
    source_decoded = Signal(int, object, object)  # source_id, QImage|None, error

    def __init__(
        self,
        convert_fn: Callable[[ConversionRequest], ConversionOutcome] = run_conversion,
        preview_fn: Callable[[SourceImage], tuple] = run_source_preview,
        executor: Executor | None = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._convert_fn = convert_fn
        self._preview_fn = preview_fn
        self.executor = executor or ThreadPoolExecutor(max_workers=MAX_WORKERS, thread_name_prefix="convert")
        self._next_id = 1
        self._latest_id = 0
        self._latest_params: tuple | None = None
        self._pending: set[int] = set()
        self._lock = threading.Lock()
        _logger.debug("ConversionLoader init: workers=%s", MAX_WORKERS if executor is None else "custom")

    @property
    def latest_id(self) -> int:
        with self._lock:
            return self._latest_id

    def is_latest(self, req_id: int) -> bool:
        with self._lock:
            return req_id == self._latest_id

    def has_pending(self) -> bool:
        with self._lock:
            return bool(self._pending)

    def request_conversion(self, source: SourceImage, fmt: str, quality: float) -> ConversionRequest | None:
        """Queue a conversion; returns the tagged request, or None when deduped."""
        draft = ConversionRequest(source=source, format=fmt, quality=quality)
        params = draft.params()
        with self._lock:
            # The newest request is identical and still running: nothing to do.
            if self._latest_params == params and self._latest_id in self._pending:
                _logger.debug("request_conversion dedupe(pending): id=%s params=%s", self._latest_id, params)
                return None
            req_id = self._next_id
            self._next_id += 1
            self._latest_id = req_id
            self._latest_params = params
            self._pending.add(req_id)
            pending_count = len(self._pending)

        request = replace(draft, seq=req_id)
        metrics.inc("conversion.requested")
        _logger.debug(
            "request_conversion queued: id=%s format=%s quality=%.2f pending=%s",
            req_id,
            fmt,
            quality,
            pending_count,
        )
        try:
            future = self.executor.submit(self._convert_fn, request)
        except RuntimeError as e:
            # Executor already shut down
            _logger.warning("submit conversion failed: id=%s err=%s", req_id, e)
            with self._lock:
                self._pending.discard(req_id)
            return None
        future.add_done_callback(partial(self._on_conversion_done, request))
        return request

    def _on_conversion_done(self, request: ConversionRequest, future: Future) -> None:
        if future.cancelled():
            with self._lock:
                self._pending.discard(request.seq)
            return
        try:
            outcome = future.result()
        except Exception as e:
            _logger.exception("conversion job failed: id=%s", request.seq)
            outcome = ConversionOutcome(request, error=str(e))

        with self._lock:
            self._pending.discard(request.seq)
            latest = self._latest_id
        if request.seq != latest:
            metrics.inc("conversion.stale_dropped")
            _logger.debug("conversion_finished stale: id=%s latest=%s (dropped)", request.seq, latest)
            return
        _logger.debug(
            "conversion_finished emit: id=%s format=%s ok=%s err=%s",
            request.seq,
            request.format,
            outcome.converted is not None,
            outcome.error,
        )
        self.conversion_finished.emit(outcome)

    def request_source_preview(self, source: SourceImage) -> None:
        try:
            future = self.executor.submit(self._source_job, source)
        except RuntimeError as e:
            _logger.warning("submit preview failed: id=%s err=%s", source.source_id, e)
            return
        future.add_done_callback(partial(self._on_source_done, source))

    def _source_job(self, source: SourceImage) -> tuple:
        source_id, array, error = self._preview_fn(source)
        image = array_to_qimage(array) if array is not None else None
        return source_id, image, error

    def _on_source_done(self, source: SourceImage, future: Future) -> None:
        if future.cancelled():
            return
        try:
            source_id, image, error = future.result()
        except Exception as e:
            _logger.exception("source preview failed: id=%s", source.source_id)
            source_id, image, error = source.source_id, None, str(e)
        self.source_decoded.emit(source_id, image, error)

    def invalidate(self) -> None:
        """Make every in-flight conversion stale (used on reset)."""
        with self._lock:
            self._latest_id = 0
            self._latest_params = None

    def shutdown(self) -> None:
        self.invalidate()
        self.executor.shutdown(wait=False, cancel_futures=True)
