"""
Image filters built on the convolution engine.

    SobelFilter          thresholded edge mask + per-channel gradient angle
    SobelXFilter/YFilter single-axis gradient, stretched for viewing
    GaussianFilter       separable blur (row pass, then column pass)
    DifferenceOfGaussian band-pass: small blur minus large blur

Filters are immutable: size, sigma and threshold are fixed at
construction and the kernels are built once. Changing a parameter
means building a new filter.
"""

import math
import logging
from typing import NamedTuple, Optional

import numpy as np

from .config import SOBEL_THRESHOLD
from .convolution import Kernel, convolve, subtract
from .errors import InvalidParameter
from .numeric import clamp01
from .parallel import run_bands
from .pixels import COLOR_CHANNELS, PixelBuffer, stretch_image

logger = logging.getLogger(__name__)

# The Sobel weights sum to zero, so the factor is given explicitly.
SOBEL_X = Kernel(3, 3, (1, 0, -1, 2, 0, -2, 1, 0, -1), factor=1.0)
SOBEL_Y = Kernel(3, 3, (1, 2, 1, 0, 0, 0, -1, -2, -1), factor=1.0)


class SobelResult(NamedTuple):
    """
    Output of SobelFilter.apply.

    Attributes:
        edges: Binary mask, 1.0 where the channel magnitude reaches the
            threshold. Alpha is 0.
        gradients: (height, width, 3) float32 gradient angles in
            radians, ``atan2(gy, gx)`` per channel.
    """
    edges: PixelBuffer
    gradients: np.ndarray


class SobelXFilter:
    """Horizontal Sobel response stretched to [0, 1]."""

    def apply(self, source: PixelBuffer, workers: Optional[int] = None) -> PixelBuffer:
        return stretch_image(convolve(source, SOBEL_X, workers), 0.0, 1.0)


class SobelYFilter:
    """Vertical Sobel response stretched to [0, 1]."""

    def apply(self, source: PixelBuffer, workers: Optional[int] = None) -> PixelBuffer:
        return stretch_image(convolve(source, SOBEL_Y, workers), 0.0, 1.0)


class SobelFilter:
    """
    Gradient-magnitude edge detector.

    Per channel: magnitude = clamp01(sqrt(gx² + gy²)), edge where
    magnitude >= threshold. The gradient angle is recorded for every
    pixel, edge or not, for the edge-orientation histogram.
    """

    def __init__(self, threshold: float = SOBEL_THRESHOLD):
        if not 0.0 <= threshold <= 1.0:
            raise InvalidParameter(
                f"Sobel threshold must be in [0, 1], got {threshold}"
            )
        self.threshold = float(threshold)

    def apply(self, source: PixelBuffer,
              workers: Optional[int] = None) -> SobelResult:
        edge_x = convolve(source, SOBEL_X, workers).pixels
        edge_y = convolve(source, SOBEL_Y, workers).pixels

        height, width = source.shape
        edges = np.zeros((height, width, 4), dtype=np.float32)
        gradients = np.zeros((height, width, COLOR_CHANNELS), dtype=np.float32)

        def threshold_rows(start: int, stop: int) -> None:
            gx = edge_x[start:stop, :, :COLOR_CHANNELS]
            gy = edge_y[start:stop, :, :COLOR_CHANNELS]
            magnitude = clamp01(np.sqrt(gx * gx + gy * gy))
            edges[start:stop, :, :COLOR_CHANNELS] = magnitude >= self.threshold
            gradients[start:stop] = np.arctan2(gy, gx)

        run_bands(threshold_rows, height, workers=workers)

        gradients.setflags(write=False)
        return SobelResult(PixelBuffer._adopt(edges), gradients)

    def __repr__(self):
        return f"SobelFilter(threshold={self.threshold})"


def gaussian_size_from_sigma(sigma: float) -> int:
    """Odd kernel size covering about three sigmas: ceil(3σ), bumped to odd."""
    size = int(math.ceil(3 * sigma))
    if size % 2 == 0:
        size += 1
    return size


def gaussian_kernel_values(size: int, sigma: float) -> np.ndarray:
    """
    1D samples of the isotropic 2D Gaussian density along one axis.

    Sample i (offset x = i - size // 2) is
    ``1 / (2π σ²) * exp(-x² / (2 σ²))``. The kernel factor later
    normalizes the samples to unit sum.
    """
    half = size // 2
    offsets = np.arange(-half, half + 1, dtype=np.float64)
    sigma_square = sigma * sigma
    return np.exp(-(offsets * offsets) / (2 * sigma_square)) / (2 * math.pi * sigma_square)


class GaussianFilter:
    """
    Separable Gaussian blur.

    Args:
        size: Kernel size, must be odd.
        sigma: Standard deviation, must be positive.

    Raises:
        InvalidParameter: On an even size or non-positive sigma.
    """

    def __init__(self, size: int, sigma: float):
        if size <= 0 or size % 2 == 0:
            raise InvalidParameter(f"Kernel size must be odd, got {size}")
        if sigma <= 0:
            raise InvalidParameter(f"Sigma must be positive, got {sigma}")

        self.size = int(size)
        self.sigma = float(sigma)

        values = tuple(gaussian_kernel_values(self.size, self.sigma))
        self.kernel_x = Kernel(self.size, 1, values)
        self.kernel_y = Kernel(1, self.size, values)

    @classmethod
    def from_sigma(cls, sigma: float) -> "GaussianFilter":
        return cls(gaussian_size_from_sigma(sigma), sigma)

    def apply(self, source: PixelBuffer,
              workers: Optional[int] = None) -> PixelBuffer:
        result_x = convolve(source, self.kernel_x, workers)
        return convolve(result_x, self.kernel_y, workers)

    def __repr__(self):
        return f"GaussianFilter(size={self.size}, sigma={self.sigma})"


class DifferenceOfGaussian:
    """
    Band-pass filter: blur(small) - blur(large), same sigma.

    Set ``stretch_for_viewing`` to rescale each channel to [0, 1]; leave
    it off when the output feeds statistics.
    """

    def __init__(self, small_size: int, large_size: int, sigma: float,
                 stretch_for_viewing: bool = False):
        self.small_filter = GaussianFilter(small_size, sigma)
        self.large_filter = GaussianFilter(large_size, sigma)
        self.stretch_for_viewing = stretch_for_viewing

    @property
    def small_size(self) -> int:
        return self.small_filter.size

    @property
    def large_size(self) -> int:
        return self.large_filter.size

    @property
    def sigma(self) -> float:
        return self.small_filter.sigma

    def apply(self, source: PixelBuffer,
              workers: Optional[int] = None) -> PixelBuffer:
        blurred_small = self.small_filter.apply(source, workers)
        blurred_large = self.large_filter.apply(source, workers)

        difference = subtract(blurred_small, blurred_large)
        if self.stretch_for_viewing:
            return stretch_image(difference, 0.0, 1.0)
        return difference

    def __repr__(self):
        return (
            f"DifferenceOfGaussian(small_size={self.small_size}, "
            f"large_size={self.large_size}, sigma={self.sigma})"
        )
