"""Headless ingestion and export helpers.

Turns files, drops and clipboard contents into `(bytes, mime_type)` blobs and
writes exported results. Dialogs and prompts live in the widgets.
"""

from pathlib import Path

from PySide6.QtCore import QBuffer, QIODevice, QMimeData, QMimeDatabase
from PySide6.QtGui import QGuiApplication, QImage

from image_converter.config import ACCEPTED_MIME_TYPES, EXPORT_BASENAME
from image_converter.logger import get_logger

_logger = get_logger("file_operations")

Blob = tuple[bytes, str]


def mime_type_for_file(path: str | Path) -> str:
    """Declared type of a file, as Qt's MIME database reports it."""
    name = QMimeDatabase().mimeTypeForFile(str(path)).name()
    # Some platforms report the legacy alias
    return "image/jpeg" if name == "image/pjpeg" else name


def read_image_file(path: str | Path) -> Blob:
    """Read a file and return its bytes with the declared MIME type."""
    p = Path(path)
    data = p.read_bytes()
    mime = mime_type_for_file(p)
    _logger.debug("read file: %s (%s, %d bytes)", p.name, mime, len(data))
    return data, mime


def _local_paths(mime: QMimeData) -> list[str]:
    if not mime.hasUrls():
        return []
    return [url.toLocalFile() for url in mime.urls() if url.isLocalFile()]


def _qimage_to_png(image: QImage) -> bytes:
    buf = QBuffer()
    buf.open(QIODevice.OpenModeFlag.WriteOnly)
    image.save(buf, "PNG")
    data = bytes(buf.data())
    buf.close()
    return data


def image_from_mime_data(mime: QMimeData | None) -> Blob | None:
    """Extract one image blob from drop or clipboard data.

    Order: a local image file, then raw `image/*` payloads in an accepted type,
    then any bitmap the platform offers (captured as PNG).
    """
    if mime is None:
        return None

    for path in _local_paths(mime):
        if mime_type_for_file(path) in ACCEPTED_MIME_TYPES:
            try:
                return read_image_file(path)
            except OSError as e:
                _logger.warning("cannot read dropped file %s: %s", path, e)

    for fmt in mime.formats():
        if fmt in ACCEPTED_MIME_TYPES:
            data = bytes(mime.data(fmt))
            if data:
                return data, fmt

    if mime.hasImage():
        image = mime.imageData()
        if isinstance(image, QImage) and not image.isNull():
            data = _qimage_to_png(image)
            if data:
                return data, "image/png"
    return None


def image_from_clipboard() -> Blob | None:
    cb = QGuiApplication.clipboard()
    if cb is None:
        _logger.warning("clipboard unavailable")
        return None
    return image_from_mime_data(cb.mimeData())


def export_filename(fmt: str) -> str:
    return f"{EXPORT_BASENAME}.{fmt}"


def write_export(path: str | Path, data: bytes) -> Path:
    p = Path(path)
    p.write_bytes(data)
    _logger.debug("exported %d bytes to %s", len(data), p)
    return p
