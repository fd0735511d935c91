from __future__ import annotations

from PySide6.QtCore import Property, QObject, Signal

from image_converter.config import ZOOM_DEFAULT, ZOOM_MAX, ZOOM_MIN, ZOOM_STEP


def zoom_step_in(current: float) -> float:
    return min(round(current + ZOOM_STEP, 2), ZOOM_MAX)


def zoom_step_out(current: float) -> float:
    return max(round(current - ZOOM_STEP, 2), ZOOM_MIN)


class ViewerState(QObject):
    """Zoom shared by the original and converted layers."""

    zoomChanged = Signal(float)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._zoom = ZOOM_DEFAULT

    def _get_zoom(self) -> float:
        return float(self._zoom)

    zoom = Property(float, _get_zoom, notify=zoomChanged)  # type: ignore[arg-type]

    def _set_zoom(self, value: float) -> None:
        z = min(max(float(value), ZOOM_MIN), ZOOM_MAX)
        if z == self._zoom:
            return
        self._zoom = z
        self.zoomChanged.emit(z)

    def zoom_in(self) -> None:
        self._set_zoom(zoom_step_in(self._zoom))

    def zoom_out(self) -> None:
        self._set_zoom(zoom_step_out(self._zoom))

    def zoom_fit(self) -> None:
        self._set_zoom(ZOOM_DEFAULT)
