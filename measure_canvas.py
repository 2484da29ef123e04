# measure_canvas.py
"""
The rendering surface: shows the letterboxed image with measurement overlays and
turns pointer input into image-space picks.
"""
import logging
from typing import Optional

from PySide6 import QtCore, QtGui, QtWidgets

import config
import graphics_utils
import settings_manager
from measurement_session import MeasurementSession
from overlay_geometry import tick_length_for_viewport
from vector_math import Point
from viewport import (Viewport, compute_contain_viewport, img_to_viewport,
                      is_inside_image, viewport_to_img)

logger = logging.getLogger(__name__)


class MeasureCanvas(QtWidgets.QWidget):
    """
    Paints the session state over the loaded image.

    The viewport is recomputed whenever the widget is resized or the pixmap changes.
    Only left-button presses inside the image are forwarded as picks; the session
    decides what a pick means.
    """
    pointPicked = QtCore.Signal(float, float)
    hoverChanged = QtCore.Signal(object)  # Point in image space, or None

    _session: MeasurementSession
    _pixmap: Optional[QtGui.QPixmap]
    _viewport: Optional[Viewport]
    _hover_img: Optional[Point]
    _style: graphics_utils.OverlayStyle

    def __init__(self, session: MeasurementSession, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        logger.info("Initializing MeasureCanvas...")
        self._session = session
        self._pixmap = None
        self._viewport = None
        self._hover_img = None
        self._style = graphics_utils.overlay_style_from_settings()

        self.setMouseTracking(True)
        self.setCursor(QtCore.Qt.CursorShape.CrossCursor)
        self.setMinimumSize(200, 150)
        self.setSizePolicy(QtWidgets.QSizePolicy.Policy.Expanding, QtWidgets.QSizePolicy.Policy.Expanding)

        for signal in (session.stageChanged, session.calibrationPointsChanged, session.calibrationChanged,
                       session.modeChanged, session.pendingPointChanged, session.measurementsChanged):
            signal.connect(self._on_session_changed)

    def sizeHint(self) -> QtCore.QSize:
        return QtCore.QSize(config.DEFAULT_SURFACE_WIDTH, config.DEFAULT_SURFACE_HEIGHT)

    def _on_session_changed(self, *args) -> None:
        self.update()

    # --- Image / viewport ---

    def set_pixmap(self, pixmap: Optional[QtGui.QPixmap]) -> None:
        if pixmap is not None and pixmap.isNull():
            pixmap = None
        self._pixmap = pixmap
        self._set_hover(None)
        self._recompute_viewport()
        self.update()

    def _recompute_viewport(self) -> None:
        if self._pixmap is None:
            self._viewport = None
            return
        self._viewport = compute_contain_viewport(self._pixmap.width(), self._pixmap.height(),
                                                  self.width(), self.height(), config.VIEWPORT_PADDING)

    @property
    def viewport_transform(self) -> Optional[Viewport]:
        return self._viewport

    def reload_style(self) -> None:
        self._style = graphics_utils.overlay_style_from_settings()
        self.update()

    def current_tick_length(self) -> float:
        """Tick length in image units that appears as the configured on-screen length."""
        if self._viewport is None:
            return config.DEFAULT_TICK_LENGTH
        on_screen = float(settings_manager.get_setting(settings_manager.KEY_TICK_LENGTH))
        return tick_length_for_viewport(self._viewport, on_screen)

    # --- Pointer handling ---

    def _event_to_image_point(self, event: QtGui.QMouseEvent) -> Optional[Point]:
        """Image-space point under the pointer, or None if outside the image."""
        if self._pixmap is None or self._viewport is None:
            return None
        pos = event.position()
        p_img = viewport_to_img(Point(pos.x(), pos.y()), self._viewport)
        if not is_inside_image(p_img, self._pixmap.width(), self._pixmap.height()):
            return None
        return p_img

    def _set_hover(self, p_img: Optional[Point]) -> None:
        if self._hover_img != p_img:
            self._hover_img = p_img
            self.hoverChanged.emit(p_img)
            self.update()

    def mouseMoveEvent(self, event: QtGui.QMouseEvent) -> None:
        self._set_hover(self._event_to_image_point(event))
        super().mouseMoveEvent(event)

    def leaveEvent(self, event: QtCore.QEvent) -> None:
        self._set_hover(None)
        super().leaveEvent(event)

    def mousePressEvent(self, event: QtGui.QMouseEvent) -> None:
        if event.button() != QtCore.Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return
        p_img = self._event_to_image_point(event)
        if p_img is None:
            logger.debug("Click outside the image ignored.")
            return
        self.pointPicked.emit(p_img.x, p_img.y)
        event.accept()

    # --- Qt overrides ---

    def resizeEvent(self, event: QtGui.QResizeEvent) -> None:
        self._recompute_viewport()
        super().resizeEvent(event)

    def paintEvent(self, event: QtGui.QPaintEvent) -> None:
        painter = QtGui.QPainter(self)
        try:
            painter.setRenderHints(QtGui.QPainter.RenderHint.Antialiasing |
                                   QtGui.QPainter.RenderHint.SmoothPixmapTransform)
            if self._pixmap is None or self._viewport is None:
                painter.fillRect(self.rect(), QtGui.QColor(17, 17, 17))
                painter.setPen(QtGui.QColor(102, 102, 102))
                painter.drawText(QtCore.QPointF(16, 24), "Upload an image to start.")
                return

            painter.fillRect(self.rect(), QtGui.QColor(11, 11, 11))
            x, y, w, h = self._viewport.image_rect()
            painter.drawPixmap(QtCore.QRectF(x, y, w, h), self._pixmap, QtCore.QRectF(self._pixmap.rect()))

            vp = self._viewport
            graphics_utils.draw_session_on_painter(
                painter, self._session, lambda p: img_to_viewport(p, vp),
                self.current_tick_length(), self._style, hover=self._hover_img)
        finally:
            painter.end()
