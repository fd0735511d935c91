"""Split-view comparison canvas.

Paints the original image, the converted image clipped to the slider position,
and the divider with its drag handle. Both layers share one geometry (fit into
the view, then scaled about the centre by the zoom factor) so they stay pixel
aligned under the clip.
"""

from __future__ import annotations

from PySide6.QtCore import QEvent, QPointF, QRectF, QSize, Qt
from PySide6.QtGui import QColor, QFont, QPainter, QPen, QPixmap
from PySide6.QtWidgets import QSizePolicy, QWidget

from .app.backend import ConverterBackend
from .app.state.slider_state import hit_test_handle
from .config import HANDLE_RADIUS
from .event_subscription import GlobalEventSubscription
from .logger import get_logger

_logger = get_logger("ui_compare")

DIVIDER_COLOR = QColor(59, 130, 246)
BACKGROUND_COLOR = QColor(243, 244, 246)

_MOVE_EVENTS = (QEvent.Type.MouseMove, QEvent.Type.TouchUpdate)
_RELEASE_EVENTS = (QEvent.Type.MouseButtonRelease, QEvent.Type.TouchEnd, QEvent.Type.TouchCancel)


def layer_rect(image_size: QSize, view_w: float, view_h: float, zoom: float) -> QRectF:
    """Contain-fit `image_size` into the view, then scale about the view centre."""
    iw = max(1, image_size.width())
    ih = max(1, image_size.height())
    if view_w <= 0 or view_h <= 0:
        return QRectF()
    scale = min(view_w / iw, view_h / ih) * float(zoom)
    w = iw * scale
    h = ih * scale
    return QRectF((view_w - w) / 2.0, (view_h - h) / 2.0, w, h)


def _global_x(event: QEvent) -> float | None:
    """Horizontal global position of a mouse event or the first touch point."""
    if event.type() in (QEvent.Type.TouchBegin, QEvent.Type.TouchUpdate):
        points = event.points()
        if not points:
            return None
        return float(points[0].globalPosition().x())
    if hasattr(event, "globalPosition"):
        return float(event.globalPosition().x())
    return None


class CompareView(QWidget):
    def __init__(self, backend: ConverterBackend, parent: QWidget | None = None):
        super().__init__(parent)
        self._backend = backend
        self._converter = backend.converter
        self._viewer = backend.viewer
        self._slider = backend.slider
        self._original_pix = QPixmap()
        self._converted_pix = QPixmap()

        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents, True)
        self.setMinimumSize(200, 150)

        # Moves are observed only while dragging; releases for the whole lifetime.
        self._move_sub = GlobalEventSubscription(_MOVE_EVENTS, self._on_global_move, self)
        self._release_sub = GlobalEventSubscription(_RELEASE_EVENTS, self._on_global_release, self)
        self._release_sub.attach()

        self._converter.originalUrlChanged.connect(self._on_original_url_changed)
        self._converter.convertedUrlChanged.connect(self._on_converted_url_changed)
        self._converter.previewErrorChanged.connect(lambda _t: self.update())
        self._viewer.zoomChanged.connect(lambda _z: self.update())
        self._slider.positionChanged.connect(lambda _p: self.update())
        self._slider.draggingChanged.connect(self._on_dragging_changed)

    # ---- resources ----
    def _pixmap_for(self, locator: str) -> QPixmap:
        image = self._backend.registry.image(locator)
        if image is None or image.isNull():
            return QPixmap()
        return QPixmap.fromImage(image)

    def _on_original_url_changed(self, url: str) -> None:
        self._original_pix = self._pixmap_for(url)
        self.update()

    def _on_converted_url_changed(self, url: str) -> None:
        self._converted_pix = self._pixmap_for(url)
        self.update()

    # ---- slider input ----
    def handle_center(self) -> QPointF:
        return QPointF(self._slider.divider_offset(self.width()), self.height() / 2.0)

    def _press_at(self, local: QPointF) -> bool:
        center = self.handle_center()
        on_handle = hit_test_handle(local.x(), local.y(), center.x(), center.y(), HANDLE_RADIUS)
        return self._slider.press(on_handle)

    def _drag_to_global_x(self, global_x: float) -> None:
        left = float(self.mapToGlobal(QPointF(0.0, 0.0)).x())
        self._slider.move(global_x, left, float(self.width()))

    def _on_dragging_changed(self, dragging: bool) -> None:
        if dragging:
            self._move_sub.attach()
            self.setCursor(Qt.CursorShape.ClosedHandCursor)
        else:
            self._move_sub.detach()
            self.unsetCursor()

    def _on_global_move(self, event: QEvent) -> None:
        x = _global_x(event)
        if x is not None:
            self._drag_to_global_x(x)

    def _on_global_release(self, _event: QEvent) -> None:
        if self._slider.dragging:
            self._slider.release()

    def mousePressEvent(self, event) -> None:
        if event.button() == Qt.MouseButton.LeftButton and self._press_at(event.position()):
            event.accept()
            return
        super().mousePressEvent(event)

    def event(self, event: QEvent) -> bool:
        if event.type() == QEvent.Type.TouchBegin:
            points = event.points()
            if points and self._press_at(points[0].position()):
                event.accept()
                return True
        return super().event(event)

    # ---- painting ----
    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
            painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
            painter.fillRect(self.rect(), BACKGROUND_COLOR)
            w, h = float(self.width()), float(self.height())
            zoom = self._viewer.zoom

            if not self._original_pix.isNull():
                painter.drawPixmap(layer_rect(self._original_pix.size(), w, h, zoom), self._original_pix, QRectF(self._original_pix.rect()))
            else:
                self._draw_message(painter, self._converter.previewError or "Loading…")

            if not self._converted_pix.isNull():
                # Reveal the leftmost `position`% of the converted layer.
                _top, right, _bottom, _left = self._slider.clip_inset()
                painter.save()
                painter.setClipRect(QRectF(0.0, 0.0, w * (100.0 - right) / 100.0, h))
                painter.drawPixmap(layer_rect(self._converted_pix.size(), w, h, zoom), self._converted_pix, QRectF(self._converted_pix.rect()))
                painter.restore()

            self._draw_divider(painter, h)
        finally:
            painter.end()

    def _draw_divider(self, painter: QPainter, h: float) -> None:
        center = self.handle_center()
        painter.setPen(QPen(DIVIDER_COLOR, 2))
        painter.drawLine(QPointF(center.x(), 0.0), QPointF(center.x(), h))
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(DIVIDER_COLOR)
        painter.drawEllipse(center, HANDLE_RADIUS, HANDLE_RADIUS)

    def _draw_message(self, painter: QPainter, text: str) -> None:
        font = QFont()
        font.setPointSize(12)
        painter.setFont(font)
        painter.setPen(QColor(107, 114, 128))
        painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, text)

    # ---- teardown ----
    def teardown(self) -> None:
        """Drop every application-wide subscription held by this view."""
        self._move_sub.detach()
        self._release_sub.detach()
        if self._slider.dragging:
            self._slider.release()

    def closeEvent(self, event) -> None:
        self.teardown()
        super().closeEvent(event)
