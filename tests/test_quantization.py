"""Tests for best colors and best shades."""

import numpy as np
import pytest

from image_signature.errors import EmptyInput, InvalidParameter
from image_signature.quantization import (
    CELL_COUNT,
    EMPTY_COLOR_INFO,
    ColorCluster,
    ColorInfo,
    RGBClusters,
    cell_index,
    compute_best_colors_and_histogram,
    count_colors,
)
from image_signature.pixels import PixelBuffer

RED_U32 = 0xFF0000FF
BLUE_U32 = 0x0000FFFF


class TestColorCluster:
    """Tests for the running-average cluster."""

    def test_average_is_floored(self):
        cluster = ColorCluster()
        cluster.add_color((10, 20, 30, 255))
        cluster.add_color((11, 21, 31, 255))
        assert cluster.count == 2
        assert cluster.average == (10, 20, 30, 255)

    def test_empty_cluster_average(self):
        assert ColorCluster().average == (0, 0, 0, 0)

    def test_combine(self):
        a = ColorCluster(1, (100, 0, 0, 255))
        b = ColorCluster(3, (0, 300, 0, 765))
        a.combine(b)
        assert a.count == 4
        assert a.average == (25, 75, 0, 255)

    def test_combine_empty_is_noop(self):
        a = ColorCluster(2, (10, 10, 10, 10))
        a.combine(ColorCluster())
        assert a.count == 2
        assert a.average == (5, 5, 5, 5)


class TestRGBClusters:
    """Tests for the 512-cell RGB grid."""

    @pytest.mark.parametrize("color,index", [
        ((0, 0, 0, 255), 0),
        ((31, 31, 31, 0), 0),
        ((0, 0, 32, 255), 1),
        ((0, 32, 0, 255), 8),
        ((32, 0, 0, 255), 64),
        ((255, 255, 255, 255), 511),
    ])
    def test_cell_index(self, color, index):
        assert cell_index(color) == index

    def test_vectorized_add_matches_single(self, noise_image):
        color32 = PixelBuffer.from_array(noise_image).to_color32()[:5]
        vectorized = RGBClusters.from_pixels(color32)

        single = RGBClusters()
        for pixel in color32.reshape(-1, 4):
            single.add_color(pixel)

        assert np.array_equal(vectorized.counts, single.counts)
        assert np.array_equal(vectorized.totals, single.totals)
        assert len(vectorized) == CELL_COUNT

    def test_shade_is_mean_of_members(self):
        clusters = RGBClusters()
        clusters.add_color((0, 0, 0, 255))
        clusters.add_color((31, 31, 31, 255))
        assert clusters.cluster(0).average == (15, 15, 15, 255)

    def test_best_clusters_ties_in_cell_order(self):
        clusters = RGBClusters()
        clusters.add_color((255, 0, 0, 255))
        clusters.add_color((0, 0, 255, 255))
        best = clusters.get_best_clusters(2)
        assert best[0].average == (0, 0, 255, 255)
        assert best[1].average == (255, 0, 0, 255)

    def test_combine_equals_whole(self, noise_buffer):
        color32 = noise_buffer.to_color32()
        whole = RGBClusters.from_pixels(color32)
        merged = RGBClusters.from_pixels(color32[:10]).combine(
            RGBClusters.from_pixels(color32[10:])
        )
        assert np.array_equal(whole.counts, merged.counts)
        assert np.array_equal(whole.totals, merged.totals)


class TestCountColors:
    """Tests for exact color counting."""

    def test_first_occurrence_order(self):
        pixels = np.array([
            [0, 0, 2, 255],
            [0, 0, 1, 255],
            [0, 0, 1, 255],
            [0, 0, 2, 255],
            [0, 0, 3, 255],
        ], dtype=np.uint8)
        counts = count_colors(pixels)
        assert list(counts) == [0x2FF, 0x1FF, 0x3FF]
        assert counts.most_common(2) == [(0x2FF, 2), (0x1FF, 2)]


class TestBestColorsAndHistogram:
    """Tests for the combined color pass."""

    def test_red_blue_best_colors(self, red_blue_buffer):
        summary = compute_best_colors_and_histogram(red_blue_buffer, top_k=3)
        assert summary.best_colors == (
            ColorInfo(RED_U32, 0.5),
            ColorInfo(BLUE_U32, 0.5),
            EMPTY_COLOR_INFO,
        )

    def test_red_blue_best_shades(self, red_blue_buffer):
        summary = compute_best_colors_and_histogram(red_blue_buffer, top_k=3)
        assert summary.best_shades == (
            ColorInfo(BLUE_U32, 0.5),
            ColorInfo(RED_U32, 0.5),
            EMPTY_COLOR_INFO,
        )

    def test_histogram_is_normalized(self, red_blue_buffer):
        summary = compute_best_colors_and_histogram(red_blue_buffer)
        assert summary.histogram.normalized
        assert summary.histogram.get_bins(1)[0] == pytest.approx(1.0)

    def test_ratios_are_ranked(self, square_buffer):
        summary = compute_best_colors_and_histogram(square_buffer, top_k=4)
        ratios = [info.ratio for info in summary.best_colors]
        assert ratios == sorted(ratios, reverse=True)
        # White background: 4096 - 1024 pixels
        assert summary.best_colors[0] == ColorInfo(0xFFFFFFFF, 0.75)
        assert summary.best_colors[1] == ColorInfo(0xC81E1EFF, 0.25)
        assert sum(ratios) == pytest.approx(1.0)

    def test_worker_count_does_not_change_result(self, noise_buffer):
        single = compute_best_colors_and_histogram(noise_buffer, workers=1)
        many = compute_best_colors_and_histogram(noise_buffer, workers=4)
        assert single.best_colors == many.best_colors
        assert single.best_shades == many.best_shades
        assert single.histogram == many.histogram

    def test_zero_top_k(self, red_blue_buffer):
        summary = compute_best_colors_and_histogram(red_blue_buffer, top_k=0)
        assert summary.best_colors == ()
        assert summary.best_shades == ()

    def test_negative_top_k_raises(self, red_blue_buffer):
        with pytest.raises(InvalidParameter):
            compute_best_colors_and_histogram(red_blue_buffer, top_k=-1)

    def test_empty_image_raises(self, empty_buffer):
        with pytest.raises(EmptyInput):
            compute_best_colors_and_histogram(empty_buffer)

    def test_color_info_str(self):
        assert str(ColorInfo(RED_U32, 0.5)) == "RGBA(255, 0, 0, 255) [50.0%]"
