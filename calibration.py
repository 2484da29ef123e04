# calibration.py
"""
Scale calibration: the ratio of real-world length to one image pixel.

A Calibration is derived from two picked image points and a user-entered real length.
It is an immutable value; redoing the calibration replaces it wholesale. Stored
measurements keep pixel distances only, so conversion always uses whichever
calibration is current when a value is displayed or exported.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional

import config
from vector_math import Point, distance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Calibration:
    unit_per_px: float
    unit: str

    def __post_init__(self) -> None:
        if not math.isfinite(self.unit_per_px) or self.unit_per_px <= 0:
            raise ValueError(f"Calibration requires a finite, positive unit_per_px, got {self.unit_per_px}.")

    def to_units(self, px_distance: float) -> float:
        """Converts an image-space pixel distance to the calibrated unit."""
        return px_distance * self.unit_per_px


def parse_real_length(text: Optional[str]) -> Optional[float]:
    """
    Parses the user-entered real-world length.

    Returns the value only if it is finite and strictly positive, otherwise None
    (empty, non-numeric, nan, inf, zero, negative, "1_000" and non-ASCII digits are rejected).
    """
    if text is None:
        return None
    cleaned = text.strip()
    if not cleaned:
        return None
    # float() also takes digit separators and non-ASCII digits; plain ASCII numerals only.
    if "_" in cleaned or not cleaned.isascii():
        logger.debug(f"Real length '{text}' is not a plain ASCII number.")
        return None
    try:
        value = float(cleaned)
    except ValueError:
        logger.debug(f"Real length '{text}' is not numeric.")
        return None
    if not math.isfinite(value) or value <= 0:
        logger.debug(f"Real length '{text}' is not a finite positive number.")
        return None
    return value


def derive_calibration(p1: Optional[Point], p2: Optional[Point],
                       real_length_text: Optional[str], unit: Optional[str]) -> Optional[Calibration]:
    """
    Builds a Calibration from two image points and the real length between them.

    Returns None (and stores nothing) if either point is missing, the points
    coincide, or the real length is invalid. An empty unit falls back to
    config.FALLBACK_UNIT.
    """
    if p1 is None or p2 is None:
        logger.debug("Cannot derive calibration: both calibration points are required.")
        return None
    px = distance(p1, p2)
    if px < config.PICK_EPS:
        logger.debug("Cannot derive calibration: calibration points coincide.")
        return None
    real = parse_real_length(real_length_text)
    if real is None:
        return None
    unit_label = (unit or "").strip() or config.FALLBACK_UNIT
    calibration = Calibration(unit_per_px=real / px, unit=unit_label)
    logger.info(f"Derived calibration: {real} {unit_label} over {px:.3f} px = {calibration.unit_per_px} {unit_label}/px")
    return calibration


def format_unit_per_px(calibration: Optional[Calibration]) -> str:
    """Display string such as '1 px = 2.000e+00 nm', or '-' when uncalibrated."""
    if calibration is None:
        return "-"
    return f"1 px = {calibration.unit_per_px:.3e} {calibration.unit}"


def format_length(value: Optional[float], unit: str = "px", decimals: int = 2) -> str:
    if value is None:
        return "-"
    return f"{value:.{decimals}f} {unit}"
