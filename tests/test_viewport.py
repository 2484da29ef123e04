"""Tests for the contain-fit viewport transform."""

import pytest

from vector_math import Point
from viewport import (Viewport, compute_contain_viewport, img_to_viewport,
                      is_inside_image, viewport_to_img)


class TestComputeContainViewport:
    def test_wide_image_on_default_surface(self):
        vp = compute_contain_viewport(1000, 500, 800, 520, 16)
        assert vp.scale == pytest.approx(0.768)
        assert vp.draw_w == pytest.approx(768)
        assert vp.draw_h == pytest.approx(384)
        assert vp.offset_x == pytest.approx(16)
        assert vp.offset_y == pytest.approx(68)

    def test_tall_image_is_limited_by_height(self):
        vp = compute_contain_viewport(100, 1000, 800, 520, 16)
        assert vp.scale == pytest.approx(488 / 1000)
        assert vp.draw_h == pytest.approx(488)
        assert vp.offset_y == pytest.approx(16)

    @pytest.mark.parametrize("img_w,img_h,surf_w,surf_h", [
        (1000, 500, 800, 520),
        (37, 91, 300, 200),
        (4096, 4096, 640, 480),
    ])
    def test_drawn_image_fits_and_is_centered(self, img_w, img_h, surf_w, surf_h):
        vp = compute_contain_viewport(img_w, img_h, surf_w, surf_h, 16)
        assert vp.draw_w <= surf_w - 32 + 1e-9
        assert vp.draw_h <= surf_h - 32 + 1e-9
        assert vp.draw_w / vp.draw_h == pytest.approx(img_w / img_h)
        assert vp.offset_x * 2 + vp.draw_w == pytest.approx(surf_w)
        assert vp.offset_y * 2 + vp.draw_h == pytest.approx(surf_h)

    def test_surface_smaller_than_padding_still_positive(self):
        vp = compute_contain_viewport(100, 100, 10, 10, 16)
        assert vp.scale > 0

    @pytest.mark.parametrize("img_w,img_h", [(0, 10), (10, 0), (-5, 10)])
    def test_nonpositive_image_size_raises(self, img_w, img_h):
        with pytest.raises(ValueError):
            compute_contain_viewport(img_w, img_h, 800, 520)

    def test_image_rect(self):
        vp = Viewport(0.5, 10, 20, 50, 25)
        assert vp.image_rect() == (10, 20, 50, 25)


class TestMapping:
    def test_round_trip(self):
        vp = compute_contain_viewport(1000, 500, 800, 520, 16)
        for p in (Point(0, 0), Point(1000, 500), Point(123.4, 456.7)):
            back = viewport_to_img(img_to_viewport(p, vp), vp)
            assert back.x == pytest.approx(p.x)
            assert back.y == pytest.approx(p.y)

    def test_image_origin_maps_to_offset(self):
        vp = compute_contain_viewport(1000, 500, 800, 520, 16)
        assert img_to_viewport(Point(0, 0), vp) == Point(pytest.approx(16), pytest.approx(68))


class TestIsInsideImage:
    @pytest.mark.parametrize("p", [Point(0, 0), Point(100, 50), Point(50, 25)])
    def test_inside_and_on_edges(self, p):
        assert is_inside_image(p, 100, 50)

    @pytest.mark.parametrize("p", [Point(-0.1, 10), Point(100.1, 10), Point(10, -1), Point(10, 50.5)])
    def test_outside(self, p):
        assert not is_inside_image(p, 100, 50)
