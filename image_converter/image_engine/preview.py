"""Turn decoded numpy arrays into QImage objects off the GUI thread.

QImage creation from raw buffers can be done off the GUI thread; creating a
QPixmap must be done on the main thread. Workers build the QImage and the view
turns it into a pixmap when it paints.
"""

from typing import Any

import numpy as np
from PySide6.QtGui import QImage

_RGB_CHANNELS = 3
_EXPECTED_NDIM = 3


def array_to_qimage(image_data: Any) -> QImage:
    """Convert a numpy array (H,W,3 uint8) into a QImage.

    Returns a null QImage for None.
    """
    if image_data is None:
        return QImage()

    arr = np.ascontiguousarray(image_data)
    if arr.ndim != _EXPECTED_NDIM or arr.shape[2] < _RGB_CHANNELS:
        raise ValueError("unexpected image array shape")
    if arr.shape[2] > _RGB_CHANNELS:
        arr = np.ascontiguousarray(arr[:, :, :_RGB_CHANNELS])
    height, width = arr.shape[0], arr.shape[1]
    bytes_per_line = _RGB_CHANNELS * width
    # .copy() detaches the QImage from the numpy buffer so the array can be
    # collected while the image crosses threads.
    return QImage(arr.data, width, height, bytes_per_line, QImage.Format.Format_RGB888).copy()
