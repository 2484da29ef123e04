"""Tests for the 2D vector helpers."""

import math

import pytest

from vector_math import (Point, add_scaled, distance, dot, length, normalize,
                         perpendicular, subtract)


class TestBasicOps:
    def test_subtract(self):
        assert subtract(Point(5, 7), Point(2, 3)) == Point(3, 4)

    def test_length_345(self):
        assert length(Point(3, 4)) == pytest.approx(5.0)

    def test_length_large_components_do_not_overflow(self):
        assert math.isfinite(length(Point(1e200, 1e200)))

    def test_distance_symmetric(self):
        a, b = Point(1.5, -2.0), Point(-4.0, 9.25)
        assert distance(a, b) == pytest.approx(distance(b, a))

    def test_distance_to_self_is_zero(self):
        p = Point(3.25, -7.5)
        assert distance(p, p) == 0

    def test_dot(self):
        assert dot(Point(1, 2), Point(3, 4)) == 11

    def test_add_scaled(self):
        assert add_scaled(Point(1, 1), Point(2, -1), 3) == Point(7, -2)


class TestPerpendicular:
    @pytest.mark.parametrize("v", [Point(1, 0), Point(3, 4), Point(-2.5, 7.1)])
    def test_orthogonal_and_same_length(self, v):
        n = perpendicular(v)
        assert dot(v, n) == pytest.approx(0.0)
        assert length(n) == pytest.approx(length(v))

    def test_rotation_direction(self):
        assert perpendicular(Point(1, 0)) == Point(0, 1)


class TestNormalize:
    def test_unit_length(self):
        n = normalize(Point(3, 4))
        assert n is not None
        assert length(n) == pytest.approx(1.0)
        assert n == Point(pytest.approx(0.6), pytest.approx(0.8))

    def test_zero_vector_has_no_direction(self):
        assert normalize(Point(0, 0)) is None

    def test_below_eps_has_no_direction(self):
        assert normalize(Point(1e-12, 0)) is None
