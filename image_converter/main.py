import sys
from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from image_converter.app.backend import ConverterBackend
from image_converter.logger import CATS_ENV, LEVEL_ENV, get_logger, setup_logger
from image_converter.ops.file_operations import image_from_clipboard, read_image_file
from image_converter.ui_compare import CompareView
from image_converter.ui_controls import ControlPanel
from image_converter.ui_drop_zone import DropZone

# --- CLI logging options -----------------------------------------------------
# To prevent Qt from exiting due to unknown options, we preemptively parse
# our own options, reflect them in environment variables (IMAGE_CONVERTER_LOG_LEVEL,
# IMAGE_CONVERTER_LOG_CATS), and remove them from sys.argv.


def _apply_cli_logging_options() -> None:
    import argparse
    import os as _os

    parser = argparse.ArgumentParser(description="Image Converter", add_help=False)
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    args, remaining = parser.parse_known_args()
    if args.log_level:
        _os.environ[LEVEL_ENV] = args.log_level
    if args.log_cats:
        _os.environ[CATS_ENV] = args.log_cats
    sys.argv[:] = [sys.argv[0], *remaining]


logger = get_logger("main")

_LABEL_STYLE = "QLabel { background-color: rgba(31, 41, 55, 210); color: white; padding: 4px 12px; border-radius: 4px; }"
_RESET_STYLE = """
    QPushButton { background-color: rgba(31, 41, 55, 210); color: white; font-size: 18px;
                  font-weight: bold; border-radius: 16px; min-width: 32px; min-height: 32px; }
    QPushButton:hover { background-color: #ef4444; }
"""
_DOWNLOAD_STYLE = """
    QPushButton { background-color: #22c55e; color: white; font-weight: bold;
                  padding: 8px 16px; border-radius: 4px; }
    QPushButton:hover { background-color: #16a34a; }
"""

_PAGE_DROP = 0
_PAGE_COMPARE = 1


class ConverterWindow(QMainWindow):
    def __init__(self, backend: ConverterBackend | None = None):
        super().__init__()
        self.setWindowTitle("Image Converter")
        self.resize(1200, 800)

        self.backend = backend or ConverterBackend(parent=self)
        converter = self.backend.converter

        self.drop_zone = DropZone()
        self.drop_zone.imageChosen.connect(self.load_image)
        drop_page = QWidget()
        drop_layout = QVBoxLayout(drop_page)
        drop_layout.setContentsMargins(48, 48, 48, 48)
        drop_layout.addWidget(self.drop_zone)

        self.compare_view = CompareView(self.backend)
        self.controls = ControlPanel(self.backend)

        self.reset_btn = QPushButton("×")
        self.reset_btn.setStyleSheet(_RESET_STYLE)
        self.reset_btn.clicked.connect(lambda: self.backend.dispatch("reset"))
        self.download_btn = QPushButton("Download")
        self.download_btn.setStyleSheet(_DOWNLOAD_STYLE)
        self.download_btn.clicked.connect(self.download_converted)

        self.original_label = QLabel()
        self.converted_label = QLabel()
        for label in (self.original_label, self.converted_label):
            label.setStyleSheet(_LABEL_STYLE)

        top_bar = QHBoxLayout()
        top_bar.addWidget(self.reset_btn)
        top_bar.addStretch()
        top_bar.addWidget(self.download_btn)

        bottom_bar = QHBoxLayout()
        bottom_bar.addWidget(self.original_label, alignment=Qt.AlignmentFlag.AlignBottom)
        bottom_bar.addStretch()
        bottom_bar.addWidget(self.controls)
        bottom_bar.addStretch()
        bottom_bar.addWidget(self.converted_label, alignment=Qt.AlignmentFlag.AlignBottom)

        compare_page = QWidget()
        compare_layout = QVBoxLayout(compare_page)
        compare_layout.addLayout(top_bar)
        compare_layout.addWidget(self.compare_view, 1)
        compare_layout.addLayout(bottom_bar)

        self.pages = QStackedWidget()
        self.pages.addWidget(drop_page)
        self.pages.addWidget(compare_page)
        self.setCentralWidget(self.pages)

        # Paste works on both pages for the window's whole lifetime.
        self.paste_shortcut = QShortcut(QKeySequence(QKeySequence.StandardKey.Paste), self)
        self.paste_shortcut.setContext(Qt.ShortcutContext.ApplicationShortcut)
        self.paste_shortcut.activated.connect(self.paste_image)

        converter.hasSourceChanged.connect(self._on_has_source_changed)
        converter.originalLabelChanged.connect(self.original_label.setText)
        converter.convertedLabelChanged.connect(self.converted_label.setText)
        converter.convertingChanged.connect(self._on_converting_changed)
        self.backend.event_.connect(self._on_backend_event)
        self.converted_label.setText(converter.convertedLabel)
        self._on_has_source_changed(converter.hasSource)

    # ---- ingestion ----
    def load_image(self, data: bytes, mime_type: str) -> None:
        self.backend.dispatch("loadImage", {"data": data, "mimeType": mime_type})

    def load_file(self, path: str) -> bool:
        try:
            data, mime = read_image_file(path)
        except OSError as e:
            logger.warning("cannot open %s: %s", path, e)
            self.statusBar().showMessage(f"Cannot open {Path(path).name}", 5000)
            return False
        return self.backend.load_source(data, mime)

    def paste_image(self) -> None:
        blob = image_from_clipboard()
        if blob is None:
            logger.debug("paste ignored: clipboard has no supported image")
            return
        self.load_image(*blob)

    # ---- export ----
    def download_converted(self) -> None:
        if self.backend.converted is None:
            self.statusBar().showMessage("Nothing to download yet", 3000)
            return
        path, _ = QFileDialog.getSaveFileName(self, "Save converted image", self.backend.download_filename())
        if path:
            self.backend.dispatch("exportConverted", {"path": path})

    # ---- state → view ----
    def _on_has_source_changed(self, has_source: bool) -> None:
        self.pages.setCurrentIndex(_PAGE_COMPARE if has_source else _PAGE_DROP)

    def _on_converting_changed(self, converting: bool) -> None:
        if converting:
            self.statusBar().showMessage("Converting…")
        else:
            self.statusBar().clearMessage()

    def _on_backend_event(self, payload: object) -> None:
        if not isinstance(payload, dict):
            return
        message = str(payload.get("message") or "")
        if message:
            self.statusBar().showMessage(message, 5000)

    def closeEvent(self, event) -> None:
        self.compare_view.teardown()
        self.backend.shutdown()
        super().closeEvent(event)


def run(argv: list[str] | None = None) -> int:
    """Application entrypoint (packaging-friendly)."""
    _apply_cli_logging_options()
    setup_logger()
    if argv is None:
        argv = sys.argv

    app = QApplication(argv)
    window = ConverterWindow()

    # Qt strips its own options from arguments(); anything left may be a file.
    for arg in app.arguments()[1:]:
        if Path(arg).is_file():
            window.load_file(arg)
            break

    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(run())
