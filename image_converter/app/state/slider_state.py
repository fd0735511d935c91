from __future__ import annotations

import math

from PySide6.QtCore import Property, QObject, Signal

from image_converter.config import HANDLE_RADIUS, SLIDER_DEFAULT

IDLE = "idle"
DRAGGING = "dragging"


def position_from_pointer(pointer_x: float, container_left: float, container_width: float) -> float:
    """Map a pointer x coordinate onto a 0..100 split position."""
    pos = ((float(pointer_x) - float(container_left)) / float(container_width)) * 100.0
    return min(max(pos, 0.0), 100.0)


def hit_test_handle(
    x: float,
    y: float,
    divider_x: float,
    mid_y: float,
    radius: float = HANDLE_RADIUS,
) -> bool:
    """True when (x, y) lies inside the circular handle on the divider."""
    return math.hypot(x - divider_x, y - mid_y) <= radius


class SliderState(QObject):
    """Split-view slider: Idle <-> Dragging.

    Dragging starts only from a press on the handle; any release ends it. While
    dragging, pointer moves update the split position.
    """

    positionChanged = Signal(float)
    draggingChanged = Signal(bool)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._position = SLIDER_DEFAULT
        self._dragging = False

    def _get_position(self) -> float:
        return float(self._position)

    position = Property(float, _get_position, notify=positionChanged)  # type: ignore[arg-type]

    def _get_dragging(self) -> bool:
        return bool(self._dragging)

    dragging = Property(bool, _get_dragging, notify=draggingChanged)  # type: ignore[arg-type]

    @property
    def mode(self) -> str:
        return DRAGGING if self._dragging else IDLE

    def _set_position(self, value: float) -> None:
        p = min(max(float(value), 0.0), 100.0)
        if p == self._position:
            return
        self._position = p
        self.positionChanged.emit(p)

    def _set_dragging(self, value: bool) -> None:
        v = bool(value)
        if v == self._dragging:
            return
        self._dragging = v
        self.draggingChanged.emit(v)

    # ---- transitions ----
    def press(self, on_handle: bool) -> bool:
        """Pointer-down. Enters Dragging only when the press hit the handle."""
        if on_handle:
            self._set_dragging(True)
        return self._dragging

    def move(self, pointer_x: float, container_left: float, container_width: float) -> None:
        """Pointer-move. Ignored while Idle or when the container has no width."""
        if not self._dragging or container_width <= 0:
            return
        self._set_position(position_from_pointer(pointer_x, container_left, container_width))

    def release(self) -> None:
        self._set_dragging(False)

    def reset(self) -> None:
        self._set_dragging(False)
        self._set_position(SLIDER_DEFAULT)

    # ---- derived geometry ----
    def clip_inset(self) -> tuple[float, float, float, float]:
        """Inset (top, right, bottom, left) in percent for the converted layer."""
        return 0.0, 100.0 - self._position, 0.0, 0.0

    def divider_offset(self, container_width: float) -> float:
        return float(container_width) * self._position / 100.0
