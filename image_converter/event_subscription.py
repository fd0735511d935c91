"""Application-wide event subscriptions with explicit lifetimes.

A subscription is an event filter on the QApplication that forwards selected
event types to a callback. It is attached and detached explicitly, either by
calling attach()/detach() or by using it as a context manager:

    with GlobalEventSubscription({QEvent.Type.MouseMove}, on_move):
        ...  # receives every mouse move in the application

Making the subscription a child of the widget it serves also removes it when
that widget is destroyed without a regular close.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from PySide6.QtCore import QCoreApplication, QEvent, QObject

from .logger import get_logger

_logger = get_logger("event_subscription")


class GlobalEventSubscription(QObject):
    def __init__(
        self,
        event_types: Iterable[QEvent.Type],
        callback: Callable[[QEvent], None],
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._event_types = frozenset(event_types)
        self._callback = callback
        self._target: QCoreApplication | None = None

    @property
    def attached(self) -> bool:
        return self._target is not None

    def attach(self) -> None:
        if self._target is not None:
            return
        app = QCoreApplication.instance()
        if app is None:
            _logger.debug("attach skipped: no application instance")
            return
        app.installEventFilter(self)
        self._target = app

    def detach(self) -> None:
        target = self._target
        if target is None:
            return
        self._target = None
        target.removeEventFilter(self)

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802
        if event.type() in self._event_types:
            self._callback(event)
        # Observe only; never swallow application events.
        return False

    def __enter__(self) -> GlobalEventSubscription:
        self.attach()
        return self

    def __exit__(self, *exc_info) -> None:
        self.detach()
