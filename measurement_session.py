# measurement_session.py
"""
Owns the calibration and measurement state of a SEMMeasure session.

The session moves through three stages (upload, calibrate, measure). Raw image-space
picks are interpreted according to the current stage; rejected picks (too close to the
pending point, outside the image, or made while uncalibrated) are silent no-ops.
All mutation goes through the transition methods below, which emit Qt signals so the
UI can refresh. Nothing outside this class writes calibration or measurement data.
"""
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Tuple

from PySide6 import QtCore

import config
import file_io
from calibration import Calibration, derive_calibration
from overlay_geometry import MeasurementMode, OverlaySegment, build_overlay
from vector_math import Point, distance
from viewport import is_inside_image

logger = logging.getLogger(__name__)


class Stage(IntEnum):
    """Session phases, ordered so that earlier stages compare lower."""
    UPLOAD = 0
    CALIBRATE = 1
    MEASURE = 2

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def from_string(cls, stage_str: str) -> Optional['Stage']:
        try:
            return cls[stage_str.strip().upper()]
        except KeyError:
            logger.warning(f"Could not convert string '{stage_str}' to Stage enum.")
            return None


@dataclass(frozen=True)
class Measurement:
    """One completed measurement, in image space. Immutable once appended."""
    id: int
    mode: MeasurementMode
    p1: Point
    p2: Point
    px_distance: float


class MeasurementSession(QtCore.QObject):
    stageChanged = QtCore.Signal(object)
    calibrationPointsChanged = QtCore.Signal()
    calibrationChanged = QtCore.Signal()
    modeChanged = QtCore.Signal(object)
    pendingPointChanged = QtCore.Signal()
    measurementsChanged = QtCore.Signal()

    _stage: Stage
    _image_size: Optional[Tuple[int, int]]
    _cal_p1: Optional[Point]
    _cal_p2: Optional[Point]
    _calibration: Optional[Calibration]
    _mode: MeasurementMode
    _pending_point: Optional[Point]
    _measurements: List[Measurement]
    _next_measurement_id: int

    def __init__(self, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        logger.info("Initializing MeasurementSession...")
        self._stage = Stage.UPLOAD
        self._image_size = None
        self._cal_p1 = None
        self._cal_p2 = None
        self._calibration = None
        self._mode = MeasurementMode.POINT_POINT
        self._pending_point = None
        self._measurements = []
        self._next_measurement_id = 1
        logger.info("MeasurementSession initialized.")

    # --- Read-only state ---

    @property
    def stage(self) -> Stage:
        return self._stage

    @property
    def image_size(self) -> Optional[Tuple[int, int]]:
        return self._image_size

    @property
    def calibration_points(self) -> Tuple[Optional[Point], Optional[Point]]:
        return (self._cal_p1, self._cal_p2)

    @property
    def calibration(self) -> Optional[Calibration]:
        return self._calibration

    @property
    def mode(self) -> MeasurementMode:
        return self._mode

    @property
    def pending_point(self) -> Optional[Point]:
        return self._pending_point

    @property
    def measurements(self) -> Tuple[Measurement, ...]:
        return tuple(self._measurements)

    # --- Internal helpers ---

    def _set_stage(self, stage: Stage) -> None:
        if self._stage != stage:
            logger.info(f"Stage change: {self._stage} -> {stage}")
            self._stage = stage
            self.stageChanged.emit(stage)

    def _set_calibration_points(self, p1: Optional[Point], p2: Optional[Point]) -> None:
        if (self._cal_p1, self._cal_p2) != (p1, p2):
            self._cal_p1 = p1
            self._cal_p2 = p2
            self.calibrationPointsChanged.emit()

    def _set_calibration(self, calibration: Optional[Calibration]) -> None:
        if self._calibration != calibration:
            self._calibration = calibration
            self.calibrationChanged.emit()

    def _set_pending_point(self, point: Optional[Point]) -> None:
        if self._pending_point != point:
            self._pending_point = point
            self.pendingPointChanged.emit()

    def _clear_measurements(self, reset_ids: bool) -> bool:
        had_measurements = bool(self._measurements)
        self._measurements = []
        if reset_ids:
            self._next_measurement_id = 1
        if had_measurements:
            self.measurementsChanged.emit()
        return had_measurements

    def _accepts_image_point(self, p_img: Point) -> bool:
        if self._image_size is None:
            logger.debug("Pick ignored: no image loaded.")
            return False
        img_w, img_h = self._image_size
        if not is_inside_image(p_img, img_w, img_h):
            logger.debug(f"Pick ignored: {p_img} lies outside the {img_w}x{img_h} image.")
            return False
        return True

    # --- Stage transitions ---

    def load_image(self, width: int, height: int) -> bool:
        """Starts a fresh calibration for a newly decoded image of the given size."""
        if width <= 0 or height <= 0:
            logger.warning(f"Refusing to load image with invalid size {width}x{height}.")
            return False
        logger.info(f"Image loaded into session: {width}x{height} px")
        self._image_size = (int(width), int(height))
        self._set_pending_point(None)
        self._clear_measurements(reset_ids=True)
        self._set_calibration(None)
        self._set_calibration_points(None, None)
        self._set_stage(Stage.CALIBRATE)
        return True

    def go_back(self) -> None:
        """
        Steps back one stage, discarding what was accumulated in the stage being left.

        measure -> calibrate drops the pending point and all measurements.
        calibrate -> upload drops the calibration points, the calibration and the image.
        """
        if self._stage == Stage.MEASURE:
            self._set_pending_point(None)
            self._clear_measurements(reset_ids=True)
            self._set_stage(Stage.CALIBRATE)
        elif self._stage == Stage.CALIBRATE:
            self._set_calibration(None)
            self._set_calibration_points(None, None)
            self._image_size = None
            self._set_stage(Stage.UPLOAD)
        else:
            logger.debug("go_back ignored: already at the upload stage.")

    def return_to_stage(self, stage: Stage) -> None:
        """Steps back until `stage` is reached. Forward targets are ignored."""
        if stage > self._stage:
            logger.warning(f"Cannot move forward from {self._stage} to {stage} via return_to_stage.")
            return
        while self._stage > stage:
            self.go_back()

    def restart(self) -> None:
        """Returns to the upload stage and clears everything, including the image."""
        logger.info("Restarting session.")
        self._set_pending_point(None)
        self._clear_measurements(reset_ids=True)
        self._set_calibration(None)
        self._set_calibration_points(None, None)
        self._image_size = None
        if self._mode != MeasurementMode.POINT_POINT:
            self._mode = MeasurementMode.POINT_POINT
            self.modeChanged.emit(self._mode)
        self._set_stage(Stage.UPLOAD)

    # --- Picks ---

    def pick(self, p_img: Point) -> bool:
        """
        Interprets an image-space pick according to the current stage.

        Returns True if the pick changed the session state, False if it was rejected.
        """
        if not self._accepts_image_point(p_img):
            return False
        if self._stage == Stage.CALIBRATE:
            return self._pick_calibration_point(p_img)
        if self._stage == Stage.MEASURE:
            return self._pick_measurement_point(p_img)
        logger.debug("Pick ignored: no pick handling in the upload stage.")
        return False

    def _pick_calibration_point(self, p_img: Point) -> bool:
        if self._cal_p1 is None:
            self._set_calibration_points(p_img, None)
            return True
        if self._cal_p2 is None:
            if distance(self._cal_p1, p_img) < config.PICK_EPS:
                logger.debug("Calibration pick rejected: coincides with the first point.")
                return False
            self._set_calibration_points(self._cal_p1, p_img)
            logger.debug(f"Calibration points set: {self._cal_p1} -> {p_img}")
            return True
        # A third pick starts a new pair.
        self._set_calibration_points(p_img, None)
        return True

    def _pick_measurement_point(self, p_img: Point) -> bool:
        if self._calibration is None:
            logger.debug("Measurement pick rejected: no calibration.")
            return False
        if self._pending_point is None:
            self._set_pending_point(p_img)
            return True
        px = distance(self._pending_point, p_img)
        if px < config.PICK_EPS:
            logger.debug("Measurement pick rejected: coincides with the pending point.")
            return False
        measurement = Measurement(id=self._next_measurement_id, mode=self._mode,
                                  p1=self._pending_point, p2=p_img, px_distance=px)
        self._next_measurement_id += 1
        self._measurements.append(measurement)
        logger.info(f"Measurement {measurement.id} added ({measurement.mode}): {px:.3f} px")
        self._set_pending_point(None)
        self.measurementsChanged.emit()
        return True

    # --- Calibration ---

    def apply_calibration(self, real_length_text: str, unit: str) -> bool:
        """
        Derives the calibration from the two calibration points and enters the measure stage.

        Fails without changing anything if not calibrating, if either point is
        missing, or if the real length is not a finite positive number.
        """
        if self._stage != Stage.CALIBRATE:
            logger.debug(f"apply_calibration ignored in stage {self._stage}.")
            return False
        calibration = derive_calibration(self._cal_p1, self._cal_p2, real_length_text, unit)
        if calibration is None:
            logger.info("Calibration not applied: incomplete points or invalid real length.")
            return False
        self._set_calibration(calibration)
        self._set_pending_point(None)
        self._clear_measurements(reset_ids=True)
        self._set_stage(Stage.MEASURE)
        return True

    # --- Measurement list editing ---

    def set_mode(self, mode: MeasurementMode) -> None:
        """Changes the mode used for new measurements; any pending point is discarded."""
        self._set_pending_point(None)
        if self._mode != mode:
            logger.info(f"Measurement mode changed: {self._mode} -> {mode}")
            self._mode = mode
            self.modeChanged.emit(mode)

    def delete_last(self) -> bool:
        had_pending = self._pending_point is not None
        self._set_pending_point(None)
        if not self._measurements:
            return had_pending
        removed = self._measurements.pop()
        logger.info(f"Deleted measurement {removed.id}.")
        self.measurementsChanged.emit()
        return True

    def clear_all(self) -> bool:
        had_pending = self._pending_point is not None
        self._set_pending_point(None)
        cleared = self._clear_measurements(reset_ids=False)
        if cleared:
            logger.info("Cleared all measurements.")
        return cleared or had_pending

    # --- Queries ---

    def calibration_px_distance(self) -> Optional[float]:
        if self._cal_p1 is None or self._cal_p2 is None:
            return None
        return distance(self._cal_p1, self._cal_p2)

    def preview_px_distance(self, hover: Optional[Point]) -> Optional[float]:
        """Pixel distance from the pending point to the hovered point, if both exist."""
        if self._pending_point is None or hover is None:
            return None
        return distance(self._pending_point, hover)

    def to_units(self, px_distance: float) -> Optional[float]:
        if self._calibration is None:
            return None
        return self._calibration.to_units(px_distance)

    def overlay_for(self, measurement: Measurement, tick_length: float) -> List[OverlaySegment]:
        if self._image_size is None:
            return []
        img_w, img_h = self._image_size
        return build_overlay(measurement.p1, measurement.p2, measurement.mode, tick_length, img_w, img_h)

    def preview_overlay(self, hover: Optional[Point], tick_length: float) -> List[OverlaySegment]:
        """Overlay for the in-progress measurement from the pending point to `hover`."""
        if self._pending_point is None or hover is None or self._image_size is None:
            return []
        img_w, img_h = self._image_size
        return build_overlay(self._pending_point, hover, self._mode, tick_length, img_w, img_h)

    def export_csv_string(self) -> Optional[str]:
        """CSV text for the current measurements, or None (refused) when uncalibrated."""
        if self._calibration is None:
            logger.warning("CSV export refused: no calibration.")
            return None
        return file_io.measurements_to_csv_string(self._measurements, self._calibration)

    def export_csv(self, filepath: str) -> bool:
        if self._calibration is None:
            logger.warning("CSV export refused: no calibration.")
            return False
        return file_io.export_measurements_to_csv(filepath, self._measurements, self._calibration)
