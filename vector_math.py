# vector_math.py
"""
Minimal 2D vector primitives shared by the viewport, clipping and overlay code.

Points and vectors use the same immutable Point type. A Point never records which
coordinate frame (image space or viewport space) it belongs to; callers track that.
"""
import math
from typing import NamedTuple, Optional

import config


class Point(NamedTuple):
    """A real-valued 2D coordinate or vector."""
    x: float
    y: float


def subtract(a: Point, b: Point) -> Point:
    return Point(a.x - b.x, a.y - b.y)


def length(v: Point) -> float:
    """Euclidean norm (hypot, so large components do not overflow)."""
    return math.hypot(v.x, v.y)


def distance(a: Point, b: Point) -> float:
    return length(subtract(a, b))


def dot(a: Point, b: Point) -> float:
    return a.x * b.x + a.y * b.y


def perpendicular(v: Point) -> Point:
    """Rotates v by 90 degrees: (x, y) -> (-y, x)."""
    return Point(-v.y, v.x)


def normalize(v: Point) -> Optional[Point]:
    """
    Returns the unit vector along v, or None when v is shorter than config.EPS.

    A None result means the direction is undefined; callers skip whatever depends on it.
    """
    v_len = length(v)
    if v_len < config.EPS:
        return None
    return Point(v.x / v_len, v.y / v_len)


def add_scaled(p: Point, v: Point, s: float) -> Point:
    """Returns p + s * v."""
    return Point(p.x + v.x * s, p.y + v.y * s)
