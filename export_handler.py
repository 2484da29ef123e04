# export_handler.py
"""
Handles raster snapshot export of the image with its measurement overlays.
"""
import logging
from enum import Enum, auto
from typing import Optional, TYPE_CHECKING

from PySide6 import QtCore, QtGui

import config
import graphics_utils

if TYPE_CHECKING:
    from image_handler import ImageHandler
    from measure_canvas import MeasureCanvas
    from measurement_session import MeasurementSession

logger = logging.getLogger(__name__)


class SnapshotResolutionMode(Enum):
    """Defines the resolution modes for snapshot export."""
    VIEWPORT = auto()        # The canvas exactly as shown on screen, letterbox included
    ORIGINAL_IMAGE = auto()  # Native image resolution, overlays re-rendered from session data


class ExportHandler(QtCore.QObject):
    """Renders and saves PNG snapshots of the current overlay state."""

    exportFinished = QtCore.Signal(bool, str)  # success, message

    _session: 'MeasurementSession'
    _image_handler: 'ImageHandler'
    _canvas: 'MeasureCanvas'

    def __init__(self,
                 session: 'MeasurementSession',
                 image_handler: 'ImageHandler',
                 canvas: 'MeasureCanvas',
                 parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self._session = session
        self._image_handler = image_handler
        self._canvas = canvas
        logger.debug("ExportHandler initialized.")

    def _render_original_image(self) -> QtGui.QImage:
        pixmap = self._image_handler.pixmap
        if pixmap is None:
            return QtGui.QImage()
        image = QtGui.QImage(pixmap.size(), QtGui.QImage.Format.Format_ARGB32_Premultiplied)
        image.fill(QtCore.Qt.GlobalColor.black)
        painter = QtGui.QPainter(image)
        try:
            painter.setRenderHint(QtGui.QPainter.RenderHint.Antialiasing)
            painter.drawPixmap(0, 0, pixmap)
            # Keep ticks the same fraction of the image as on screen.
            tick_length = self._canvas.current_tick_length()
            graphics_utils.draw_session_on_painter(
                painter, self._session, graphics_utils.identity_transform,
                tick_length, graphics_utils.overlay_style_from_settings())
        finally:
            painter.end()
        return image

    def render_snapshot(self, mode: SnapshotResolutionMode = SnapshotResolutionMode.VIEWPORT) -> QtGui.QImage:
        """Returns the snapshot as a QImage, or a null QImage when no image is loaded."""
        if not self._image_handler.is_loaded:
            logger.warning("Snapshot requested but no image is loaded.")
            return QtGui.QImage()
        if mode == SnapshotResolutionMode.ORIGINAL_IMAGE:
            return self._render_original_image()
        return self._canvas.grab().toImage()

    def save_snapshot(self, filepath: str,
                      mode: SnapshotResolutionMode = SnapshotResolutionMode.VIEWPORT) -> bool:
        logger.info(f"Exporting snapshot ({mode.name}) to: {filepath}")
        image = self.render_snapshot(mode)
        if image.isNull():
            message = "Nothing to export: no image loaded."
            logger.error(message)
            self.exportFinished.emit(False, message)
            return False
        if not image.save(filepath, "PNG"):
            message = f"Could not write snapshot to '{filepath}'."
            logger.error(message)
            self.exportFinished.emit(False, message)
            return False
        message = f"Snapshot saved to '{filepath}' ({image.width()}x{image.height()})."
        logger.info(message)
        self.exportFinished.emit(True, message)
        return True

    @staticmethod
    def default_filename() -> str:
        return config.DEFAULT_SNAPSHOT_FILENAME
