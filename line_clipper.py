# line_clipper.py
"""
Clips infinite lines against the image rectangle, for drawing long guide lines.
"""
import logging
from typing import List, Optional, Tuple

import config
from vector_math import Point

logger = logging.getLogger(__name__)


def _nearly_equal(a: float, b: float) -> bool:
    return abs(a - b) < config.CLIP_DEDUPE_TOL


def _dedupe(points: List[Point]) -> List[Point]:
    unique: List[Point] = []
    for p in points:
        if not any(_nearly_equal(p.x, q.x) and _nearly_equal(p.y, q.y) for q in unique):
            unique.append(p)
    return unique


def clip_infinite_line_to_rect(origin: Point, direction: Point,
                               width: float, height: float) -> Optional[Tuple[Point, Point]]:
    """
    Returns the two points where the line origin + t * direction crosses the
    rectangle [0, width] x [0, height], or None if it does not cross it in two places.

    `direction` need not be a unit vector. A degenerate direction returns None, as does
    a line that misses the rectangle or only grazes a single corner.
    """
    if abs(direction.x) < config.EPS and abs(direction.y) < config.EPS:
        return None

    candidates: List[Point] = []

    # Vertical boundaries x = 0 and x = width
    if abs(direction.x) >= config.EPS:
        for x_bound in (0.0, float(width)):
            t = (x_bound - origin.x) / direction.x
            y = origin.y + t * direction.y
            if 0 <= y <= height:
                candidates.append(Point(x_bound, y))

    # Horizontal boundaries y = 0 and y = height
    if abs(direction.y) >= config.EPS:
        for y_bound in (0.0, float(height)):
            t = (y_bound - origin.y) / direction.y
            x = origin.x + t * direction.x
            if 0 <= x <= width:
                candidates.append(Point(x, y_bound))

    unique = _dedupe(candidates)
    if len(unique) < 2:
        logger.debug(f"Line through {origin} dir {direction} does not cross {width}x{height} rect twice.")
        return None

    # Farthest pair, so near-corner clusters never yield a near-zero segment.
    best_a, best_b = unique[0], unique[1]
    best_d = -1.0
    for i in range(len(unique)):
        for j in range(i + 1, len(unique)):
            dx = unique[i].x - unique[j].x
            dy = unique[i].y - unique[j].y
            d = dx * dx + dy * dy
            if d > best_d:
                best_d = d
                best_a, best_b = unique[i], unique[j]
    return best_a, best_b
