"""Tests for clipping infinite lines to the image rectangle."""

import pytest

from line_clipper import clip_infinite_line_to_rect
from vector_math import Point


def _as_set(segment):
    return {(round(p.x, 9), round(p.y, 9)) for p in segment}


class TestClipInfiniteLine:
    def test_horizontal_line(self):
        result = clip_infinite_line_to_rect(Point(10, 50), Point(1, 0), 100, 100)
        assert result == (Point(0, 50), Point(100, 50))

    def test_vertical_line(self):
        result = clip_infinite_line_to_rect(Point(30, 10), Point(0, -2), 100, 80)
        assert result is not None
        assert _as_set(result) == {(30, 0), (30, 80)}

    def test_diagonal_through_corners(self):
        result = clip_infinite_line_to_rect(Point(50, 50), Point(1, 1), 100, 100)
        assert result is not None
        assert _as_set(result) == {(0, 0), (100, 100)}

    def test_direction_need_not_be_unit(self):
        a = clip_infinite_line_to_rect(Point(20, 30), Point(3, 1), 200, 100)
        b = clip_infinite_line_to_rect(Point(20, 30), Point(300, 100), 200, 100)
        assert a is not None and b is not None
        assert _as_set(a) == _as_set(b)

    def test_origin_outside_rect(self):
        result = clip_infinite_line_to_rect(Point(-50, 20), Point(1, 0), 100, 100)
        assert result is not None
        assert _as_set(result) == {(0, 20), (100, 20)}

    def test_zero_direction(self):
        assert clip_infinite_line_to_rect(Point(10, 10), Point(0, 0), 100, 100) is None

    def test_line_missing_rect(self):
        assert clip_infinite_line_to_rect(Point(0, 200), Point(1, 0), 100, 100) is None

    def test_single_corner_touch(self):
        assert clip_infinite_line_to_rect(Point(0, 0), Point(1, -1), 100, 100) is None

    @pytest.mark.parametrize("origin,direction", [
        (Point(12, 34), Point(0.3, 0.7)),
        (Point(99, 1), Point(-1, 0.25)),
        (Point(50, 50), Point(1, -3)),
    ])
    def test_endpoints_on_boundary_and_on_line(self, origin, direction):
        w, h = 100, 60
        result = clip_infinite_line_to_rect(origin, direction, w, h)
        assert result is not None
        for p in result:
            on_edge = (abs(p.x) < 1e-9 or abs(p.x - w) < 1e-9 or
                       abs(p.y) < 1e-9 or abs(p.y - h) < 1e-9)
            assert on_edge
            cross = (p.x - origin.x) * direction.y - (p.y - origin.y) * direction.x
            assert cross == pytest.approx(0.0, abs=1e-9)
        assert result[0] != result[1]
