# image_handler.py
"""
Manages loading of the single micrograph image for SEMMeasure using OpenCV.

Decoding is the only asynchronous-looking boundary of the application: the image
handler either emits imageLoaded with the decoded dimensions or imageLoadFailed
with a message. The measurement session only ever sees the width and height.
"""
import logging
import os
from typing import Any, Dict, Optional

import cv2  # type: ignore
import numpy as np
from PySide6 import QtCore, QtGui

logger = logging.getLogger(__name__)


class ImageLoadError(Exception):
    """Raised when an image file cannot be read or decoded."""


def decode_image_file(filepath: str) -> np.ndarray:
    """
    Reads and decodes an image file into an OpenCV array (BGR, BGRA or grayscale).

    Uses numpy.fromfile + cv2.imdecode rather than cv2.imread so that paths with
    non-ASCII characters work on every platform.

    Raises:
        ImageLoadError: If the file cannot be read or is not a decodable image.
    """
    try:
        raw = np.fromfile(filepath, dtype=np.uint8)
    except OSError as e:
        raise ImageLoadError(f"Cannot read file '{filepath}': {e}") from e
    if raw.size == 0:
        raise ImageLoadError(f"File '{filepath}' is empty.")
    try:
        cv_img = cv2.imdecode(raw, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise ImageLoadError(f"OpenCV failed to decode '{filepath}': {e}") from e
    if cv_img is None or cv_img.size == 0:
        raise ImageLoadError(f"File '{filepath}' is not a supported image.")
    if cv_img.dtype != np.uint8:
        # 16-bit micrographs are scaled down to 8 bits for display.
        cv_img = cv2.normalize(cv_img, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    return cv_img


def convert_cv_to_qimage(cv_img: np.ndarray) -> QtGui.QImage:
    """Converts an OpenCV array to a deep-copied QImage. Returns a null QImage on failure."""
    height, width = cv_img.shape[:2]
    channels = cv_img.shape[2] if len(cv_img.shape) == 3 else 1
    if channels == 1:
        img_format = QtGui.QImage.Format.Format_Grayscale8
        converted = np.require(cv_img, np.uint8, 'C')
    elif channels == 3:
        img_format = QtGui.QImage.Format.Format_RGB888
        converted = np.require(cv2.cvtColor(cv_img, cv2.COLOR_BGR2RGB), np.uint8, 'C')
    elif channels == 4:
        img_format = QtGui.QImage.Format.Format_RGBA8888
        converted = np.require(cv2.cvtColor(cv_img, cv2.COLOR_BGRA2RGBA), np.uint8, 'C')
    else:
        logger.error(f"Unsupported number of image channels ({channels}) for conversion.")
        return QtGui.QImage()
    q_img = QtGui.QImage(converted.data, width, height, converted.strides[0], img_format)
    if q_img.isNull():
        logger.error("QImage creation failed during conversion.")
        return QtGui.QImage()
    # The QImage above borrows numpy memory; copy before it goes away.
    return q_img.copy()


class ImageHandler(QtCore.QObject):
    """
    Loads one image at a time and keeps its pixmap for display and export.

    Signals:
        imageLoaded (dict): 'filepath', 'filename', 'width', 'height' of the decoded image.
        imageLoadFailed (str): Error message when a file cannot be decoded.
    """
    imageLoaded = QtCore.Signal(dict)
    imageLoadFailed = QtCore.Signal(str)

    _image_filepath: str = ""
    _pixmap: Optional[QtGui.QPixmap] = None
    _width: int = 0
    _height: int = 0

    def __init__(self, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        logger.info("ImageHandler initialized.")

    def open_image(self, filepath: str) -> bool:
        logger.info(f"Attempting to open image: {filepath}")
        self.release_image()
        try:
            cv_img = decode_image_file(filepath)
            q_img = convert_cv_to_qimage(cv_img)
            if q_img.isNull():
                raise ImageLoadError(f"Could not convert '{os.path.basename(filepath)}' for display.")
            pixmap = QtGui.QPixmap.fromImage(q_img)
            if pixmap.isNull() or pixmap.width() <= 0 or pixmap.height() <= 0:
                raise ImageLoadError(f"Image '{os.path.basename(filepath)}' has invalid dimensions.")
        except ImageLoadError as e:
            error_msg = f"Error opening image '{os.path.basename(filepath)}': {e}"
            logger.error(error_msg, exc_info=True)
            self.release_image()
            self.imageLoadFailed.emit(error_msg)
            return False

        self._image_filepath = filepath
        self._pixmap = pixmap
        self._width = pixmap.width()
        self._height = pixmap.height()
        logger.info(f"Image loaded successfully: '{os.path.basename(filepath)}' ({self._width}x{self._height}).")
        self.imageLoaded.emit(self.get_image_info())
        return True

    def release_image(self) -> None:
        self._image_filepath = ""
        self._pixmap = None
        self._width = 0
        self._height = 0

    def get_image_info(self) -> Dict[str, Any]:
        return {
            'filepath': self._image_filepath,
            'filename': os.path.basename(self._image_filepath),
            'width': self._width,
            'height': self._height,
        }

    @property
    def is_loaded(self) -> bool:
        return self._pixmap is not None

    @property
    def pixmap(self) -> Optional[QtGui.QPixmap]:
        return self._pixmap

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height
