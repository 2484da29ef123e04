"""Tests for measurement overlay construction."""

import pytest

import config
from overlay_geometry import (MeasurementMode, OverlayKind, build_overlay,
                              tick_length_for_viewport)
from vector_math import Point, distance, dot, subtract
from viewport import Viewport

W, H = 200, 100


def _kinds(segments):
    return [s.kind for s in segments]


class TestMeasurementMode:
    def test_str(self):
        assert str(MeasurementMode.POINT_POINT) == "point-point"
        assert str(MeasurementMode.POINT_LINE) == "point-line"
        assert str(MeasurementMode.LINE_LINE) == "line-line"

    @pytest.mark.parametrize("text,expected", [
        ("point-line", MeasurementMode.POINT_LINE),
        (" LINE-LINE ", MeasurementMode.LINE_LINE),
        ("point_point", MeasurementMode.POINT_POINT),
    ])
    def test_from_string(self, text, expected):
        assert MeasurementMode.from_string(text) is expected

    def test_from_string_unknown(self):
        assert MeasurementMode.from_string("angle") is None

    def test_glyphs(self):
        assert MeasurementMode.POINT_POINT.glyph == config.MODE_GLYPH_POINT_POINT
        assert MeasurementMode.LINE_LINE.glyph == config.MODE_GLYPH_LINE_LINE


class TestBuildOverlay:
    def test_point_point_has_two_ticks(self):
        segments = build_overlay(Point(50, 50), Point(150, 50), MeasurementMode.POINT_POINT, 10, W, H)
        assert _kinds(segments) == [OverlayKind.TICK, OverlayKind.TICK]
        first, second = segments
        assert {first.start, first.end} == {Point(50, 45), Point(50, 55)}
        assert {second.start, second.end} == {Point(150, 45), Point(150, 55)}

    def test_point_line_tick_at_first_guide_through_second(self):
        segments = build_overlay(Point(50, 50), Point(150, 50), MeasurementMode.POINT_LINE, 10, W, H)
        assert _kinds(segments) == [OverlayKind.TICK, OverlayKind.GUIDE_LINE]
        tick, guide = segments
        assert {tick.start.x, tick.end.x} == {50}
        assert {guide.start, guide.end} == {Point(150, 0), Point(150, 100)}

    def test_line_line_has_two_guides(self):
        segments = build_overlay(Point(50, 50), Point(150, 50), MeasurementMode.LINE_LINE, 10, W, H)
        assert _kinds(segments) == [OverlayKind.GUIDE_LINE, OverlayKind.GUIDE_LINE]
        assert {segments[0].start, segments[0].end} == {Point(50, 0), Point(50, 100)}
        assert {segments[1].start, segments[1].end} == {Point(150, 0), Point(150, 100)}

    @pytest.mark.parametrize("mode", list(MeasurementMode))
    def test_segments_are_perpendicular(self, mode):
        p1, p2 = Point(20, 30), Point(170, 80)
        axis = subtract(p2, p1)
        for seg in build_overlay(p1, p2, mode, 12, W, H):
            assert dot(subtract(seg.end, seg.start), axis) == pytest.approx(0.0, abs=1e-6)

    def test_tick_is_centered_with_requested_length(self):
        p1, p2 = Point(20, 30), Point(170, 80)
        tick = build_overlay(p1, p2, MeasurementMode.POINT_POINT, 12, W, H)[0]
        assert distance(tick.start, tick.end) == pytest.approx(12)
        mid = Point((tick.start.x + tick.end.x) / 2, (tick.start.y + tick.end.y) / 2)
        assert mid == Point(pytest.approx(20), pytest.approx(30))

    @pytest.mark.parametrize("mode", list(MeasurementMode))
    def test_coincident_points_give_no_overlay(self, mode):
        assert build_overlay(Point(10, 10), Point(10, 10), mode, 10, W, H) == []

    def test_guide_outside_image_is_dropped(self):
        # Vertical guides at x=300 and x=400 lie right of the 200 px wide image.
        segments = build_overlay(Point(300, 50), Point(400, 50), MeasurementMode.LINE_LINE, 10, W, H)
        assert segments == []

    def test_point_line_keeps_tick_when_guide_is_dropped(self):
        segments = build_overlay(Point(100, 50), Point(400, 50), MeasurementMode.POINT_LINE, 10, W, H)
        assert _kinds(segments) == [OverlayKind.TICK]


class TestTickLengthForViewport:
    def test_scales_to_image_units(self):
        vp = Viewport(0.5, 0, 0, 100, 50)
        assert tick_length_for_viewport(vp, 16) == pytest.approx(32)

    def test_default_on_screen_length(self):
        vp = Viewport(2.0, 0, 0, 100, 50)
        assert tick_length_for_viewport(vp) == pytest.approx(config.TICK_LENGTH_VIEWPORT_PX / 2.0)
