# graphics_utils.py
"""
Utility functions for drawing measurements and their overlays with a QPainter.

Geometry arrives in image space; a point transform (image -> painter coordinates)
is supplied by the caller, so the same helpers serve the live canvas (letterboxed
viewport) and native-resolution snapshot export (identity transform).
"""
import logging
from typing import Callable, NamedTuple, Optional, Sequence, TYPE_CHECKING

from PySide6 import QtCore, QtGui

import config
import settings_manager
from measurement_session import Stage
from overlay_geometry import MeasurementMode, OverlayKind, OverlaySegment, build_overlay
from vector_math import Point

if TYPE_CHECKING:
    from measurement_session import MeasurementSession

logger = logging.getLogger(__name__)

PointTransform = Callable[[Point], Point]


def identity_transform(p: Point) -> Point:
    return p


def _to_qpointf(p: Point) -> QtCore.QPointF:
    return QtCore.QPointF(p.x, p.y)


def make_pen(color: QtGui.QColor, width: float) -> QtGui.QPen:
    """Creates a cosmetic pen, so line width is constant regardless of painter scale."""
    pen = QtGui.QPen(color)
    pen.setWidthF(width)
    pen.setCosmetic(True)
    return pen


def draw_line_on_painter(painter: QtGui.QPainter,
                         a: Point,
                         b: Point,
                         to_painter: PointTransform,
                         pen: QtGui.QPen) -> None:
    painter.save()
    try:
        painter.setPen(pen)
        painter.drawLine(_to_qpointf(to_painter(a)), _to_qpointf(to_painter(b)))
    finally:
        painter.restore()


def draw_dot_on_painter(painter: QtGui.QPainter,
                        p: Point,
                        to_painter: PointTransform,
                        color: QtGui.QColor,
                        radius: float) -> None:
    """Draws a filled dot of `radius` painter units centered on p."""
    painter.save()
    try:
        painter.setPen(QtCore.Qt.PenStyle.NoPen)
        painter.setBrush(QtGui.QBrush(color))
        painter.drawEllipse(_to_qpointf(to_painter(p)), radius, radius)
    finally:
        painter.restore()


def draw_overlay_on_painter(painter: QtGui.QPainter,
                            segments: Sequence[OverlaySegment],
                            to_painter: PointTransform,
                            tick_pen: QtGui.QPen,
                            guide_pen: QtGui.QPen) -> None:
    """Draws tick and guide segments, choosing the pen by segment kind."""
    for segment in segments:
        pen = tick_pen if segment.kind == OverlayKind.TICK else guide_pen
        draw_line_on_painter(painter, segment.start, segment.end, to_painter, pen)


def draw_measurement_label_on_painter(painter: QtGui.QPainter,
                                      text: str,
                                      p1: Point,
                                      p2: Point,
                                      to_painter: PointTransform,
                                      color: QtGui.QColor,
                                      font_size: int,
                                      gap: float = 4.0) -> None:
    """Draws `text` just above-right of the midpoint of the (painter-space) segment."""
    a = to_painter(p1)
    b = to_painter(p2)
    mid = QtCore.QPointF((a.x + b.x) / 2.0 + gap, (a.y + b.y) / 2.0 - gap)
    painter.save()
    try:
        font = QtGui.QFont()
        font.setPointSize(font_size)
        painter.setFont(font)
        painter.setPen(color)
        painter.drawText(mid, text)
    finally:
        painter.restore()


class OverlayStyle(NamedTuple):
    measurement_pen: QtGui.QPen
    guide_pen: QtGui.QPen
    preview_pen: QtGui.QPen
    preview_color: QtGui.QColor
    calibration_pen: QtGui.QPen
    calibration_color: QtGui.QColor
    label_color: QtGui.QColor
    label_font_size: int
    show_ids: bool
    dot_radius: float


def overlay_style_from_settings() -> OverlayStyle:
    line_color = settings_manager.get_setting(settings_manager.KEY_MEASUREMENT_LINE_COLOR)
    line_width = float(settings_manager.get_setting(settings_manager.KEY_MEASUREMENT_LINE_WIDTH))
    guide_color = settings_manager.get_setting(settings_manager.KEY_GUIDE_LINE_COLOR)
    guide_width = float(settings_manager.get_setting(settings_manager.KEY_GUIDE_LINE_WIDTH))
    preview_color = settings_manager.get_setting(settings_manager.KEY_PREVIEW_COLOR)
    calibration_color = settings_manager.get_setting(settings_manager.KEY_CALIBRATION_COLOR)
    return OverlayStyle(
        measurement_pen=make_pen(line_color, line_width),
        guide_pen=make_pen(guide_color, guide_width),
        preview_pen=make_pen(preview_color, line_width),
        preview_color=preview_color,
        calibration_pen=make_pen(calibration_color, line_width),
        calibration_color=calibration_color,
        label_color=line_color,
        label_font_size=int(settings_manager.get_setting(settings_manager.KEY_LABEL_FONT_SIZE)),
        show_ids=bool(settings_manager.get_setting(settings_manager.KEY_SHOW_MEASUREMENT_IDS)),
        dot_radius=config.DOT_RADIUS_PX,
    )


def draw_session_on_painter(painter: QtGui.QPainter,
                            session: 'MeasurementSession',
                            to_painter: PointTransform,
                            tick_length: float,
                            style: OverlayStyle,
                            hover: Optional[Point] = None) -> None:
    """
    Draws everything the session currently shows on top of the image.

    In the calibrate stage: the calibration picks, the calibration segment with
    point-point ticks, and a preview from a lone first pick to `hover`.
    In the measure stage: every completed measurement with the overlay of its own
    mode, plus a preview from the pending point to `hover` in the active mode.
    `tick_length` is in image units.
    """
    stage = session.stage
    if stage == Stage.CALIBRATE:
        cal_p1, cal_p2 = session.calibration_points
        end = cal_p2 if cal_p2 is not None else hover
        if cal_p1 is not None and end is not None:
            img_w, img_h = session.image_size or (0, 0)
            pen = style.calibration_pen if cal_p2 is not None else style.preview_pen
            draw_line_on_painter(painter, cal_p1, end, to_painter, pen)
            segments = build_overlay(cal_p1, end, MeasurementMode.POINT_POINT, tick_length, img_w, img_h)
            draw_overlay_on_painter(painter, segments, to_painter, pen, pen)
        for p in (cal_p1, cal_p2):
            if p is not None:
                draw_dot_on_painter(painter, p, to_painter, style.calibration_color, style.dot_radius)
    elif stage == Stage.MEASURE:
        for m in session.measurements:
            draw_line_on_painter(painter, m.p1, m.p2, to_painter, style.measurement_pen)
            draw_overlay_on_painter(painter, session.overlay_for(m, tick_length), to_painter,
                                    style.measurement_pen, style.guide_pen)
            if style.show_ids:
                draw_measurement_label_on_painter(painter, str(m.id), m.p1, m.p2, to_painter,
                                                  style.label_color, style.label_font_size)
        pending = session.pending_point
        if pending is not None:
            draw_dot_on_painter(painter, pending, to_painter, style.preview_color, style.dot_radius)
            if hover is not None:
                draw_line_on_painter(painter, pending, hover, to_painter, style.preview_pen)
                draw_overlay_on_painter(painter, session.preview_overlay(hover, tick_length), to_painter,
                                        style.preview_pen, style.preview_pen)
