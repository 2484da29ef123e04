# overlay_geometry.py
"""
Builds the perpendicular marks that accompany a measurement.

A measurement's mode decides which marks it gets: short ticks centered on an endpoint,
or long guide lines through an endpoint clipped to the image bounds. Everything here is
in image space and free of any drawing concerns; colors and pen widths are decided by
whoever renders the segments.
"""
import logging
from enum import Enum, auto
from typing import List, NamedTuple, Optional

import config
from line_clipper import clip_infinite_line_to_rect
from vector_math import Point, add_scaled, normalize, perpendicular, subtract
from viewport import Viewport

logger = logging.getLogger(__name__)


class MeasurementMode(Enum):
    """How the two picks of a measurement are interpreted."""
    POINT_POINT = auto()  # point to point: ticks at both ends
    POINT_LINE = auto()   # point to line: tick at p1, guide line through p2
    LINE_LINE = auto()    # line to line: guide lines through both ends

    def __str__(self) -> str:
        return _MODE_STRINGS[self]

    @property
    def glyph(self) -> str:
        return _MODE_GLYPHS[self]

    @classmethod
    def from_string(cls, mode_str: str) -> Optional['MeasurementMode']:
        """Converts 'point-line' (or the enum name 'POINT_LINE') back to a member."""
        cleaned = mode_str.strip().lower()
        for member, text in _MODE_STRINGS.items():
            if cleaned == text or cleaned == member.name.lower():
                return member
        logger.warning(f"Could not convert string '{mode_str}' to MeasurementMode enum.")
        return None


_MODE_STRINGS = {
    MeasurementMode.POINT_POINT: "point-point",
    MeasurementMode.POINT_LINE: "point-line",
    MeasurementMode.LINE_LINE: "line-line",
}

_MODE_GLYPHS = {
    MeasurementMode.POINT_POINT: config.MODE_GLYPH_POINT_POINT,
    MeasurementMode.POINT_LINE: config.MODE_GLYPH_POINT_LINE,
    MeasurementMode.LINE_LINE: config.MODE_GLYPH_LINE_LINE,
}


class OverlayKind(Enum):
    TICK = auto()
    GUIDE_LINE = auto()


class OverlaySegment(NamedTuple):
    kind: OverlayKind
    start: Point
    end: Point


def _tick(center: Point, n: Point, half: float) -> OverlaySegment:
    return OverlaySegment(OverlayKind.TICK,
                          add_scaled(center, n, -half),
                          add_scaled(center, n, half))


def _guide(through: Point, n: Point,
           image_width: float, image_height: float) -> Optional[OverlaySegment]:
    clipped = clip_infinite_line_to_rect(through, n, image_width, image_height)
    if clipped is None:
        return None
    return OverlaySegment(OverlayKind.GUIDE_LINE, clipped[0], clipped[1])


def build_overlay(p1: Point, p2: Point, mode: MeasurementMode, tick_length: float,
                  image_width: float, image_height: float) -> List[OverlaySegment]:
    """
    Returns the overlay segments for a measurement from p1 to p2 (image space).

    All marks are perpendicular to p2 - p1. A zero-length segment has no
    perpendicular direction and produces no overlay. Guide lines that cannot be
    clipped to the image are left out.
    """
    n = normalize(perpendicular(subtract(p2, p1)))
    if n is None:
        return []

    half = tick_length / 2.0
    segments: List[OverlaySegment] = []
    if mode == MeasurementMode.POINT_POINT:
        segments.append(_tick(p1, n, half))
        segments.append(_tick(p2, n, half))
    elif mode == MeasurementMode.POINT_LINE:
        segments.append(_tick(p1, n, half))
        guide = _guide(p2, n, image_width, image_height)
        if guide is not None:
            segments.append(guide)
    elif mode == MeasurementMode.LINE_LINE:
        for through in (p1, p2):
            guide = _guide(through, n, image_width, image_height)
            if guide is not None:
                segments.append(guide)
    else:
        logger.error(f"Unknown measurement mode for overlay: {mode}")
    return segments


def tick_length_for_viewport(vp: Viewport,
                             on_screen_length: float = config.TICK_LENGTH_VIEWPORT_PX) -> float:
    """Converts an on-screen tick length into image units for the given viewport."""
    if vp.scale <= 0:
        return config.DEFAULT_TICK_LENGTH
    return on_screen_length / vp.scale
