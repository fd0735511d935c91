# ruff: noqa: I001
"""Conversion controls: format, quality and zoom."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QComboBox,
    QFrame,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSlider,
    QVBoxLayout,
)

from .app.backend import ConverterBackend
from .config import FORMATS, QUALITY_MAX, QUALITY_MIN, QUALITY_STEP
from .formatting import format_percent

# Slider ticks are whole multiples of QUALITY_STEP.
_Q_MIN_TICK = round(QUALITY_MIN / QUALITY_STEP)
_Q_MAX_TICK = round(QUALITY_MAX / QUALITY_STEP)


def quality_to_tick(quality: float) -> int:
    return round(float(quality) / QUALITY_STEP)


def tick_to_quality(tick: int) -> float:
    return round(int(tick) * QUALITY_STEP, 2)


class ControlPanel(QFrame):
    def __init__(self, backend: ConverterBackend, parent=None):
        super().__init__(parent)
        self._backend = backend
        self._converter = backend.converter
        self._viewer = backend.viewer
        self.setObjectName("controlPanel")
        self.setStyleSheet("""
            #controlPanel {
                background-color: rgba(31, 41, 55, 210);
                border-radius: 6px;
            }
            #controlPanel QLabel { color: white; }
        """)
        self.setFixedWidth(280)

        self.format_combo = QComboBox()
        for fmt in FORMATS:
            self.format_combo.addItem(fmt.upper(), fmt)
        self.format_combo.currentIndexChanged.connect(self._on_format_index_changed)

        self.quality_label = QLabel()
        self.quality_slider = QSlider(Qt.Orientation.Horizontal)
        self.quality_slider.setRange(_Q_MIN_TICK, _Q_MAX_TICK)
        self.quality_slider.setSingleStep(1)
        self.quality_slider.setPageStep(2)
        self.quality_slider.valueChanged.connect(self._on_quality_tick_changed)

        self.zoom_out_btn = QPushButton("−")
        self.zoom_fit_btn = QPushButton("Fit")
        self.zoom_in_btn = QPushButton("+")
        self.zoom_out_btn.clicked.connect(lambda: self._backend.dispatch("zoomOut"))
        self.zoom_fit_btn.clicked.connect(lambda: self._backend.dispatch("zoomFit"))
        self.zoom_in_btn.clicked.connect(lambda: self._backend.dispatch("zoomIn"))
        self.zoom_label = QLabel()

        quality_row = QHBoxLayout()
        quality_row.addWidget(QLabel("Quality:"))
        quality_row.addStretch()
        quality_row.addWidget(self.quality_label)

        zoom_row = QHBoxLayout()
        zoom_row.addStretch()
        zoom_row.addWidget(self.zoom_out_btn)
        zoom_row.addWidget(self.zoom_fit_btn)
        zoom_row.addWidget(self.zoom_in_btn)
        zoom_row.addStretch()

        layout = QVBoxLayout()
        layout.setContentsMargins(16, 10, 16, 10)
        layout.addWidget(self.format_combo)
        layout.addLayout(quality_row)
        layout.addWidget(self.quality_slider)
        layout.addLayout(zoom_row)
        layout.addWidget(self.zoom_label, alignment=Qt.AlignmentFlag.AlignHCenter)
        self.setLayout(layout)

        self._converter.formatChanged.connect(self._sync_format)
        self._converter.qualityChanged.connect(self._sync_quality)
        self._viewer.zoomChanged.connect(self._sync_zoom)
        self._sync_format(self._converter.format)
        self._sync_quality(self._converter.quality)
        self._sync_zoom(self._viewer.zoom)

    # ---- view → backend ----
    def _on_format_index_changed(self, index: int) -> None:
        fmt = self.format_combo.itemData(index)
        if fmt and fmt != self._converter.format:
            self._backend.dispatch("setFormat", {"value": fmt})

    def _on_quality_tick_changed(self, tick: int) -> None:
        quality = tick_to_quality(tick)
        self.quality_label.setText(format_percent(quality))
        if quality != self._converter.quality:
            self._backend.dispatch("setQuality", {"value": quality})

    # ---- state → view ----
    def _sync_format(self, fmt: str) -> None:
        idx = self.format_combo.findData(fmt)
        if idx >= 0 and idx != self.format_combo.currentIndex():
            self.format_combo.blockSignals(True)
            self.format_combo.setCurrentIndex(idx)
            self.format_combo.blockSignals(False)

    def _sync_quality(self, quality: float) -> None:
        tick = quality_to_tick(quality)
        if tick != self.quality_slider.value():
            self.quality_slider.blockSignals(True)
            self.quality_slider.setValue(tick)
            self.quality_slider.blockSignals(False)
        self.quality_label.setText(format_percent(quality))

    def _sync_zoom(self, zoom: float) -> None:
        self.zoom_label.setText(f"Zoom: {format_percent(zoom)}")
