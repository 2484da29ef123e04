"""Tests for the calibration and measurement state machine."""

import pytest

from measurement_session import Measurement, MeasurementSession, Stage
from overlay_geometry import MeasurementMode, OverlayKind
from vector_math import Point


@pytest.fixture
def session():
    return MeasurementSession()


@pytest.fixture
def calibrated(session):
    """Session on a 1000x500 image calibrated at 0.5 nm/px."""
    session.load_image(1000, 500)
    session.pick(Point(10, 10))
    session.pick(Point(10, 210))
    assert session.apply_calibration("100", "nm")
    return session


def _measure(session, a, b):
    assert session.pick(a)
    assert session.pick(b)


class TestStage:
    def test_str(self):
        assert str(Stage.CALIBRATE) == "calibrate"

    def test_from_string(self):
        assert Stage.from_string(" Measure ") is Stage.MEASURE
        assert Stage.from_string("review") is None

    def test_ordering(self):
        assert Stage.UPLOAD < Stage.CALIBRATE < Stage.MEASURE


class TestInitialState:
    def test_defaults(self, session):
        assert session.stage == Stage.UPLOAD
        assert session.image_size is None
        assert session.calibration is None
        assert session.calibration_points == (None, None)
        assert session.mode == MeasurementMode.POINT_POINT
        assert session.pending_point is None
        assert session.measurements == ()

    def test_pick_without_image_is_ignored(self, session):
        assert not session.pick(Point(1, 1))
        assert session.stage == Stage.UPLOAD


class TestLoadImage:
    def test_enters_calibrate(self, session):
        assert session.load_image(1000, 500)
        assert session.stage == Stage.CALIBRATE
        assert session.image_size == (1000, 500)

    @pytest.mark.parametrize("w,h", [(0, 10), (10, -1)])
    def test_invalid_size_rejected(self, session, w, h):
        assert not session.load_image(w, h)
        assert session.stage == Stage.UPLOAD

    def test_reload_resets_everything(self, calibrated):
        _measure(calibrated, Point(20, 20), Point(120, 20))
        calibrated.load_image(300, 300)
        assert calibrated.stage == Stage.CALIBRATE
        assert calibrated.calibration is None
        assert calibrated.measurements == ()
        assert calibrated.calibration_points == (None, None)


class TestCalibrationPicks:
    def test_two_points_then_restart_pair(self, session):
        session.load_image(1000, 500)
        assert session.pick(Point(10, 10))
        assert session.calibration_points == (Point(10, 10), None)
        assert session.pick(Point(10, 210))
        assert session.calibration_px_distance() == pytest.approx(200)
        assert session.pick(Point(50, 50))
        assert session.calibration_points == (Point(50, 50), None)
        assert session.calibration_px_distance() is None

    def test_coincident_second_point_rejected(self, session):
        session.load_image(100, 100)
        session.pick(Point(5, 5))
        assert not session.pick(Point(5, 5))
        assert session.calibration_points == (Point(5, 5), None)

    def test_outside_image_rejected(self, session):
        session.load_image(100, 100)
        assert not session.pick(Point(101, 5))
        assert session.calibration_points == (None, None)


class TestApplyCalibration:
    def test_end_to_end(self, calibrated):
        assert calibrated.stage == Stage.MEASURE
        assert calibrated.calibration.unit_per_px == pytest.approx(0.5)
        assert calibrated.calibration.unit == "nm"

    def test_needs_both_points(self, session):
        session.load_image(100, 100)
        session.pick(Point(5, 5))
        assert not session.apply_calibration("10", "nm")
        assert session.stage == Stage.CALIBRATE
        assert session.calibration is None

    @pytest.mark.parametrize("text", ["", "abc", "0", "-5", "nan", "inf"])
    def test_invalid_length_stores_nothing(self, session, text):
        session.load_image(100, 100)
        session.pick(Point(0, 0))
        session.pick(Point(50, 0))
        assert not session.apply_calibration(text, "nm")
        assert session.stage == Stage.CALIBRATE
        assert session.calibration is None

    def test_ignored_outside_calibrate(self, calibrated):
        assert not calibrated.apply_calibration("1", "um")
        assert calibrated.calibration.unit == "nm"

    def test_empty_unit_fallback(self, session):
        session.load_image(100, 100)
        session.pick(Point(0, 0))
        session.pick(Point(50, 0))
        assert session.apply_calibration("10", "")
        assert session.calibration.unit == "unit"


class TestMeasurementPicks:
    def test_first_measurement(self, calibrated):
        _measure(calibrated, Point(20, 20), Point(120, 20))
        assert calibrated.measurements == (
            Measurement(id=1, mode=MeasurementMode.POINT_POINT,
                        p1=Point(20, 20), p2=Point(120, 20), px_distance=100.0),
        )
        assert calibrated.pending_point is None
        assert calibrated.to_units(100.0) == pytest.approx(50)

    def test_pending_point_and_preview(self, calibrated):
        calibrated.pick(Point(0, 0))
        assert calibrated.pending_point == Point(0, 0)
        assert calibrated.preview_px_distance(Point(3, 4)) == pytest.approx(5)
        assert calibrated.preview_px_distance(None) is None

    def test_coincident_second_pick_rejected(self, calibrated):
        calibrated.pick(Point(30, 30))
        assert not calibrated.pick(Point(30, 30))
        assert calibrated.pending_point == Point(30, 30)
        assert calibrated.measurements == ()

    def test_mode_is_recorded(self, calibrated):
        calibrated.set_mode(MeasurementMode.LINE_LINE)
        _measure(calibrated, Point(20, 20), Point(20, 120))
        assert calibrated.measurements[0].mode == MeasurementMode.LINE_LINE

    def test_mode_change_leaves_existing_measurements(self, calibrated):
        _measure(calibrated, Point(20, 20), Point(120, 20))
        calibrated.set_mode(MeasurementMode.LINE_LINE)
        m = calibrated.measurements[0]
        assert m.mode == MeasurementMode.POINT_POINT
        segments = calibrated.overlay_for(m, 10)
        assert [s.kind for s in segments] == [OverlayKind.TICK, OverlayKind.TICK]

    def test_set_mode_discards_pending(self, calibrated):
        calibrated.pick(Point(20, 20))
        calibrated.set_mode(MeasurementMode.POINT_LINE)
        assert calibrated.pending_point is None
        calibrated.pick(Point(40, 40))
        calibrated.set_mode(MeasurementMode.POINT_LINE)
        assert calibrated.pending_point is None

    def test_uncalibrated_measure_pick_is_noop(self, session):
        session.load_image(100, 100)
        # MEASURE without a calibration is unreachable through the public transitions.
        session._stage = Stage.MEASURE
        assert not session.pick(Point(10, 10))
        assert session.pending_point is None
        assert session.measurements == ()

    def test_ids_not_reused(self, calibrated):
        _measure(calibrated, Point(0, 0), Point(10, 0))
        _measure(calibrated, Point(0, 0), Point(20, 0))
        assert calibrated.delete_last()
        _measure(calibrated, Point(0, 0), Point(30, 0))
        assert [m.id for m in calibrated.measurements] == [1, 3]
        assert calibrated.clear_all()
        _measure(calibrated, Point(0, 0), Point(40, 0))
        assert [m.id for m in calibrated.measurements] == [4]


class TestListEditing:
    def test_delete_last_on_empty(self, calibrated):
        assert not calibrated.delete_last()

    def test_delete_last_also_clears_pending(self, calibrated):
        _measure(calibrated, Point(0, 0), Point(10, 0))
        calibrated.pick(Point(5, 5))
        assert calibrated.delete_last()
        assert calibrated.pending_point is None
        assert len(calibrated.measurements) == 0

    def test_clear_all_idempotent(self, calibrated):
        _measure(calibrated, Point(0, 0), Point(10, 0))
        assert calibrated.clear_all()
        assert not calibrated.clear_all()
        assert calibrated.measurements == ()
        assert calibrated.stage == Stage.MEASURE
        assert calibrated.calibration is not None


class TestNavigation:
    def test_go_back_from_measure(self, calibrated):
        _measure(calibrated, Point(0, 0), Point(10, 0))
        calibrated.go_back()
        assert calibrated.stage == Stage.CALIBRATE
        assert calibrated.measurements == ()
        assert calibrated.calibration is not None

    def test_reapply_after_go_back_restarts_ids(self, calibrated):
        _measure(calibrated, Point(0, 0), Point(10, 0))
        calibrated.go_back()
        assert calibrated.apply_calibration("100", "nm")
        _measure(calibrated, Point(0, 0), Point(10, 0))
        assert calibrated.measurements[0].id == 1

    def test_go_back_from_calibrate(self, calibrated):
        calibrated.go_back()
        calibrated.go_back()
        assert calibrated.stage == Stage.UPLOAD
        assert calibrated.calibration is None
        assert calibrated.image_size is None
        assert calibrated.calibration_points == (None, None)

    def test_go_back_at_upload_is_noop(self, session):
        session.go_back()
        assert session.stage == Stage.UPLOAD

    def test_return_to_stage(self, calibrated):
        calibrated.return_to_stage(Stage.UPLOAD)
        assert calibrated.stage == Stage.UPLOAD

    def test_return_to_stage_forward_ignored(self, session):
        session.load_image(10, 10)
        session.return_to_stage(Stage.MEASURE)
        assert session.stage == Stage.CALIBRATE

    def test_restart(self, calibrated):
        calibrated.set_mode(MeasurementMode.LINE_LINE)
        _measure(calibrated, Point(0, 0), Point(10, 0))
        calibrated.restart()
        assert calibrated.stage == Stage.UPLOAD
        assert calibrated.mode == MeasurementMode.POINT_POINT
        assert calibrated.measurements == ()
        assert calibrated.calibration is None
        assert calibrated.image_size is None


class TestOverlays:
    def test_overlay_for_measurement(self, calibrated):
        calibrated.set_mode(MeasurementMode.POINT_LINE)
        _measure(calibrated, Point(100, 100), Point(200, 100))
        segments = calibrated.overlay_for(calibrated.measurements[0], 10)
        assert [s.kind for s in segments] == [OverlayKind.TICK, OverlayKind.GUIDE_LINE]
        guide = segments[1]
        assert {guide.start, guide.end} == {Point(200, 0), Point(200, 500)}

    def test_preview_overlay(self, calibrated):
        assert calibrated.preview_overlay(Point(50, 50), 10) == []
        calibrated.pick(Point(10, 10))
        assert len(calibrated.preview_overlay(Point(50, 10), 10)) == 2
        assert calibrated.preview_overlay(None, 10) == []


class TestExport:
    def test_csv_string(self, calibrated):
        _measure(calibrated, Point(20, 20), Point(120, 20))
        assert calibrated.export_csv_string() == "id,distance_nm\n1,50\n"

    def test_csv_refused_without_calibration(self, session):
        session.load_image(100, 100)
        assert session.export_csv_string() is None

    def test_csv_file(self, calibrated, tmp_path):
        _measure(calibrated, Point(20, 20), Point(120, 20))
        path = tmp_path / "m.csv"
        assert calibrated.export_csv(str(path))
        assert path.read_text(encoding="utf-8") == "id,distance_nm\n1,50\n"

    def test_csv_file_refused_without_calibration(self, session, tmp_path):
        path = tmp_path / "m.csv"
        assert not session.export_csv(str(path))
        assert not path.exists()


class TestSignals:
    def test_stage_and_measurement_signals(self, session):
        stages = []
        measurement_events = []
        session.stageChanged.connect(stages.append)
        session.measurementsChanged.connect(lambda: measurement_events.append(True))

        session.load_image(1000, 500)
        session.pick(Point(10, 10))
        session.pick(Point(10, 210))
        session.apply_calibration("100", "nm")
        _measure(session, Point(20, 20), Point(120, 20))

        assert stages == [Stage.CALIBRATE, Stage.MEASURE]
        assert len(measurement_events) == 1

    def test_mode_signal_only_on_change(self, session):
        modes = []
        session.modeChanged.connect(modes.append)
        session.set_mode(MeasurementMode.POINT_POINT)
        session.set_mode(MeasurementMode.LINE_LINE)
        assert modes == [MeasurementMode.LINE_LINE]

    def test_calibration_signal(self, session):
        events = []
        session.calibrationChanged.connect(lambda: events.append(session.calibration))
        session.load_image(100, 100)
        session.pick(Point(0, 0))
        session.pick(Point(10, 0))
        session.apply_calibration("5", "nm")
        assert len(events) == 1
        assert events[0].unit_per_px == pytest.approx(0.5)
