# viewport.py
"""
Handles the mapping between image pixel space and the on-screen rendering surface.

The image is fitted inside the surface minus a padding band ("contain" fit), keeping
its aspect ratio, and centered in the full surface. A Viewport is recomputed whenever
the image or the surface size changes and is treated as read-only otherwise.
"""
import logging
from typing import NamedTuple, Tuple

import config
from vector_math import Point

logger = logging.getLogger(__name__)


class Viewport(NamedTuple):
    """Uniform scale plus translation from image space to viewport space."""
    scale: float
    offset_x: float
    offset_y: float
    draw_w: float
    draw_h: float

    def image_rect(self) -> Tuple[float, float, float, float]:
        """Returns (x, y, width, height) of the drawn image in viewport space."""
        return (self.offset_x, self.offset_y, self.draw_w, self.draw_h)


def compute_contain_viewport(img_w: float, img_h: float,
                             surface_w: float, surface_h: float,
                             padding: float = config.VIEWPORT_PADDING) -> Viewport:
    """
    Fits an img_w x img_h image inside the surface minus `padding` on every side.

    The available area is floored at 1 px per axis so a surface smaller than the
    padding still yields a positive scale. Offsets are computed against the full
    surface, so the image is centered including the padding band.

    Raises:
        ValueError: If the image dimensions are not positive.
    """
    if img_w <= 0 or img_h <= 0:
        raise ValueError(f"Image dimensions must be positive, got {img_w}x{img_h}.")

    avail_w = max(1.0, surface_w - padding * 2)
    avail_h = max(1.0, surface_h - padding * 2)
    scale = min(avail_w / img_w, avail_h / img_h)
    draw_w = img_w * scale
    draw_h = img_h * scale
    offset_x = (surface_w - draw_w) / 2.0
    offset_y = (surface_h - draw_h) / 2.0
    logger.debug(f"Contain viewport for image {img_w}x{img_h} on surface {surface_w}x{surface_h}: "
                 f"scale={scale:.4f}, offset=({offset_x:.1f}, {offset_y:.1f})")
    return Viewport(scale, offset_x, offset_y, draw_w, draw_h)


def img_to_viewport(p: Point, vp: Viewport) -> Point:
    return Point(vp.offset_x + p.x * vp.scale, vp.offset_y + p.y * vp.scale)


def viewport_to_img(p: Point, vp: Viewport) -> Point:
    return Point((p.x - vp.offset_x) / vp.scale, (p.y - vp.offset_y) / vp.scale)


def is_inside_image(p_img: Point, img_w: float, img_h: float) -> bool:
    """True if p_img lies on or inside the image rectangle (edges count as inside)."""
    return 0 <= p_img.x <= img_w and 0 <= p_img.y <= img_h
