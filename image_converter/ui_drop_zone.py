"""Drop/pick surface shown while no image is loaded."""

from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QFileDialog, QLabel

from .logger import get_logger
from .ops.file_operations import image_from_mime_data, read_image_file

_logger = get_logger("drop_zone")

_IDLE_TEXT = "Drag & Drop an image here, click to select, or paste (Ctrl+V)"
_ACTIVE_TEXT = "Drop the image here..."
_FILE_FILTER = "Images (*.jpg *.jpeg *.png *.webp *.avif)"

_IDLE_STYLE = "QLabel { border: 4px dashed #d1d5db; border-radius: 8px; color: #6b7280; font-weight: bold; }"
_ACTIVE_STYLE = "QLabel { border: 4px dashed #3b82f6; border-radius: 8px; color: #3b82f6; font-weight: bold; }"


class DropZone(QLabel):
    # Emits: data, declared mime type
    imageChosen = Signal(object, str)

    def __init__(self, parent=None):
        super().__init__(_IDLE_TEXT, parent)
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setWordWrap(True)
        self.setAcceptDrops(True)
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self.setMinimumSize(320, 240)
        self.setStyleSheet(_IDLE_STYLE)

    def _set_active(self, active: bool) -> None:
        self.setText(_ACTIVE_TEXT if active else _IDLE_TEXT)
        self.setStyleSheet(_ACTIVE_STYLE if active else _IDLE_STYLE)

    def dragEnterEvent(self, event) -> None:
        mime = event.mimeData()
        if mime.hasUrls() or mime.hasImage():
            self._set_active(True)
            event.acceptProposedAction()
            return
        event.ignore()

    def dragLeaveEvent(self, event) -> None:
        self._set_active(False)
        super().dragLeaveEvent(event)

    def dropEvent(self, event) -> None:
        self._set_active(False)
        blob = image_from_mime_data(event.mimeData())
        if blob is None:
            _logger.info("drop ignored: no supported image")
            event.ignore()
            return
        event.acceptProposedAction()
        self.imageChosen.emit(*blob)

    def mouseReleaseEvent(self, event) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self.pick_file()
            return
        super().mouseReleaseEvent(event)

    def pick_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Select image", "", _FILE_FILTER)
        if not path:
            return
        try:
            data, mime = read_image_file(path)
        except OSError as e:
            _logger.warning("cannot read %s: %s", path, e)
            return
        self.imageChosen.emit(data, mime)
