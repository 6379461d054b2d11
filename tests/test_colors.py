"""Tests for color packing, color spaces and color distances."""

import math

import numpy as np
import pytest

from image_signature.colors import (
    MAX_COLOR_DISTANCE,
    XYZIlluminant,
    XYZObserver,
    cielab_distance,
    color32_distance,
    color_distance,
    color_to_int,
    delta_e_1994,
    delta_e_cie,
    format_color,
    get_reference,
    int_to_color32,
    pack_colors,
    rgb_to_xyz,
    rgb_to_yuv,
    weighted_similarity,
    xyz_to_cielab,
    yuv_distance,
)

BLACK = (0.0, 0.0, 0.0, 1.0)
WHITE = (1.0, 1.0, 1.0, 1.0)


class TestPacking:
    """Tests for u32 color packing."""

    def test_color_to_int(self):
        assert color_to_int((255, 0, 0, 255)) == 0xFF0000FF
        assert color_to_int((1, 2, 3, 4)) == 0x01020304

    def test_int_to_color32(self):
        assert int_to_color32(0x01020304) == (1, 2, 3, 4)

    def test_pack_colors_matches_scalar(self):
        colors = np.array([[255, 0, 0, 255], [1, 2, 3, 4]], dtype=np.uint8)
        packed = pack_colors(colors)
        assert packed.tolist() == [0xFF0000FF, 0x01020304]

    def test_format_color(self):
        assert format_color(0x0000FFFF) == "RGBA(0, 0, 255, 255)"


class TestRGBDistances:
    """Tests for plain RGB distances."""

    def test_black_white_is_max(self):
        assert color_distance(BLACK, WHITE) == pytest.approx(MAX_COLOR_DISTANCE)

    def test_alpha_ignored(self):
        assert color_distance((0.2, 0.4, 0.6, 0.0), (0.2, 0.4, 0.6, 1.0)) == 0.0

    def test_color32_distance(self):
        assert color32_distance((0, 0, 0, 0), (3, 4, 0, 9)) == 5.0

    def test_weighted_similarity(self):
        assert weighted_similarity(WHITE, 1.0, WHITE) == 1.0
        assert weighted_similarity(WHITE, 0.4, WHITE) == pytest.approx(0.4)
        assert weighted_similarity(BLACK, 1.0, WHITE) == pytest.approx(0.0)


class TestColorSpaces:
    """Tests for XYZ, L*a*b* and YUV conversions."""

    def test_default_reference_is_d65(self):
        assert get_reference() == (95.047, 100.000, 108.883)
        assert get_reference(XYZObserver.TEN_DEG, XYZIlluminant.A) == (
            111.144, 100.000, 35.200
        )

    def test_white_to_xyz(self):
        x, y, z = rgb_to_xyz(WHITE)
        assert x == pytest.approx(95.05)
        assert y == pytest.approx(100.0)
        assert z == pytest.approx(108.9)

    def test_white_and_black_to_lab(self):
        l_white, a_white, b_white = xyz_to_cielab(rgb_to_xyz(WHITE))
        assert l_white == pytest.approx(100.0, abs=1e-3)
        assert a_white == pytest.approx(0.0, abs=0.05)
        assert b_white == pytest.approx(0.0, abs=0.05)
        assert xyz_to_cielab((0.0, 0.0, 0.0)) == pytest.approx((0.0, 0.0, 0.0))

    def test_gray_has_no_chroma(self):
        _, u, v = rgb_to_yuv((0.5, 0.5, 0.5))
        assert u == pytest.approx(0.0, abs=1e-4)
        assert v == pytest.approx(0.0, abs=1e-4)


class TestDeltaE:
    """Tests for L*a*b* color differences."""

    def test_cie76(self):
        assert delta_e_cie((50, 0, 0), (53, 4, 0)) == pytest.approx(5.0)

    def test_cie94_lightness_only(self):
        assert delta_e_1994((50, 0, 0), (60, 0, 0)) == pytest.approx(10.0)

    def test_cie94_chroma_weighted(self):
        # c1 = 10, so the chroma term is divided by 1 + 0.045 * 10
        assert delta_e_1994((50, 10, 0), (50, 20, 0)) == pytest.approx(10 / 1.45)

    def test_cie94_identical_is_zero(self):
        assert delta_e_1994((42, -3, 7), (42, -3, 7)) == 0.0

    def test_cielab_distance(self):
        assert cielab_distance(WHITE, WHITE) == 0.0
        assert cielab_distance(BLACK, WHITE) == pytest.approx(100.0, abs=0.1)

    def test_yuv_distance_ignores_luma(self):
        assert yuv_distance((0.2, 0.2, 0.2), (0.9, 0.9, 0.9)) == pytest.approx(0.0, abs=1e-4)
        red_blue = yuv_distance((1.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert red_blue == pytest.approx(math.hypot(0.436 + 0.14713, -0.10001 - 0.615))
