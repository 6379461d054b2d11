"""
Color and edge-orientation histograms.

Two histogram types share one accumulation contract:

    Histogram      3 channels x 256 bins, one bin per 8-bit channel value
    EdgeHistogram  3 channels x 4 bins, one bin per quantized edge
                   orientation (0, 45, 90, 135 degrees)

Partial histograms built over disjoint row bands are combined bin-wise
and normalized exactly once afterwards. Combining a normalized
histogram, or normalizing twice, is rejected: both would silently
produce wrong frequencies.

Edge density per channel is the fraction of pixels whose Sobel mask is
set for that channel.
"""

import logging
from enum import IntEnum
from typing import NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

from .config import SOBEL_THRESHOLD
from .errors import EmptyInput, InvalidParameter, ShapeMismatch
from .filters import SobelFilter
from .numeric import safe_divide
from .parallel import parallel_reduce
from .pixels import COLOR_CHANNELS, PixelBuffer

logger = logging.getLogger(__name__)

HISTOGRAM_SIZE = 256

# Sobel masks are exactly 0 or 1; anything at or above this is an edge.
EDGE_MASK_LEVEL = 0.5


class Histogram:
    """
    Per-channel frequency histogram over 8-bit channel values.

    ``values`` is a (channels, bins) float64 array holding raw counts
    until normalize() turns them into frequencies. Explicit values may
    use any channel/bin count; the class defaults only apply to empty
    histograms.
    """

    bins = HISTOGRAM_SIZE
    channels = COLOR_CHANNELS

    def __init__(self, values: Optional[np.ndarray] = None,
                 normalized: bool = False):
        if values is None:
            values = np.zeros((self.channels, self.bins), dtype=np.float64)
        else:
            values = np.array(values, dtype=np.float64)
            if values.ndim != 2:
                raise ShapeMismatch(
                    f"Histogram values must be (channels, bins), got {values.shape}"
                )
            self.channels, self.bins = values.shape
        self.values = values
        self.normalized = normalized

    @classmethod
    def from_pixels(cls, color32: np.ndarray) -> "Histogram":
        """Unnormalized histogram of an (..., 4) uint8 pixel array."""
        histogram = cls()
        histogram.add_pixels(color32)
        return histogram

    def add_pixel(self, pixel: Sequence[int]) -> None:
        """Count one 8-bit pixel: bin pixel[c] of every channel c."""
        self._check_mutable("add to")
        for c in range(self.channels):
            self.values[c, pixel[c]] += 1

    def add_pixels(self, color32: np.ndarray) -> None:
        self._check_mutable("add to")
        flat = np.asarray(color32).reshape(-1, color32.shape[-1])
        for c in range(self.channels):
            self.values[c] += np.bincount(flat[:, c], minlength=self.bins)

    def normalize(self, total_count: Union[int, Sequence[int]]) -> None:
        """
        Turn counts into frequencies.

        Args:
            total_count: Number of contributing samples, either one
                count for all channels or one count per channel. A zero
                count leaves that channel at 0.
        """
        if self.normalized:
            raise InvalidParameter("Histogram is already normalized")

        totals = np.asarray(total_count, dtype=np.float64)
        if totals.ndim == 0:
            totals = np.full(self.channels, float(totals))
        elif totals.shape != (self.channels,):
            raise InvalidParameter(
                f"Expected {self.channels} per-channel counts, got {totals.shape[0]}"
            )

        self.values = safe_divide(self.values, totals[:, np.newaxis])
        self.normalized = True

    def combine(self, other: "Histogram") -> "Histogram":
        """Add another partial histogram bin-wise. Returns self."""
        if self.normalized or other.normalized:
            raise InvalidParameter(
                "Histograms can only be combined before normalization"
            )
        if self.values.shape != other.values.shape:
            raise ShapeMismatch(
                f"Cannot combine histograms of shape {self.values.shape} "
                f"and {other.values.shape}"
            )
        self.values += other.values
        return self

    def get_bins(self, channel: int) -> np.ndarray:
        if not 0 <= channel < self.channels:
            raise IndexError(f"Channel {channel} out of range")
        return self.values[channel]

    def copy(self) -> "Histogram":
        return type(self)(self.values, self.normalized)

    def to_list(self):
        return self.values.tolist()

    def _check_mutable(self, action: str) -> None:
        if self.normalized:
            raise InvalidParameter(f"Cannot {action} a normalized histogram")

    def __eq__(self, other):
        if not isinstance(other, Histogram):
            return NotImplemented
        return (type(self) is type(other)
                and self.normalized == other.normalized
                and np.array_equal(self.values, other.values))

    __hash__ = None

    def __repr__(self):
        state = "normalized" if self.normalized else "counts"
        return (
            f"{type(self).__name__}(channels={self.channels}, "
            f"bins={self.bins}, {state})"
        )


class EdgeDirection(IntEnum):
    DEG_0 = 0
    DEG_45 = 1
    DEG_90 = 2
    DEG_135 = 3


class EdgeHistogram(Histogram):
    """Per-channel histogram of quantized edge orientations."""

    bins = len(EdgeDirection)

    @staticmethod
    def get_direction(degree: float) -> EdgeDirection:
        """
        Quantize an angle to the nearest of 0/45/90/135 degrees.

        Orientation is undirected, so the angle is first wrapped into
        [0, 180]; 180 lands back on DEG_0. Halfway angles round to even,
        so 22.5 maps to DEG_0 and 67.5 to DEG_90.
        """
        while degree < 0:
            degree += 180
        while degree > 180:
            degree -= 180
        return EdgeDirection(round(degree / 45) % 4)

    @staticmethod
    def get_directions(degrees: np.ndarray) -> np.ndarray:
        """Vectorized get_direction, returning bucket indices."""
        wrapped = np.mod(degrees, 180.0)
        return np.rint(wrapped / 45.0).astype(np.int64) % 4

    def add_edge(self, channel: int,
                 direction: Union[EdgeDirection, float]) -> None:
        self._check_mutable("add to")
        if not isinstance(direction, EdgeDirection):
            direction = self.get_direction(direction)
        self.get_bins(channel)[int(direction)] += 1

    def add_edges(self, channel: int, directions: np.ndarray) -> None:
        self._check_mutable("add to")
        self.get_bins(channel)[:] += np.bincount(
            np.asarray(directions, dtype=np.int64).ravel(), minlength=self.bins
        )


class EdgeDescriptor(NamedTuple):
    """Normalized edge histogram and per-channel edge densities."""
    histogram: EdgeHistogram
    densities: Tuple[float, float, float]


def compute_histogram(image: PixelBuffer,
                      workers: Optional[int] = None) -> Histogram:
    """
    Normalized 256-bin RGB histogram of a buffer.

    Colors are quantized to 8 bits (round(clamp01(c) * 255)) first.

    Raises:
        EmptyInput: If the buffer has no pixels.
    """
    if image.size == 0:
        raise EmptyInput("Cannot compute a histogram of an empty image")

    color32 = image.to_color32()

    def histogram_rows(start: int, stop: int) -> Histogram:
        return Histogram.from_pixels(color32[start:stop])

    histogram = parallel_reduce(
        histogram_rows, image.height,
        merge=lambda acc, partial: acc.combine(partial),
        initial=Histogram(), workers=workers,
    )
    histogram.normalize(image.size)
    return histogram


def compute_edge_histogram(image: PixelBuffer,
                           threshold: float = SOBEL_THRESHOLD,
                           workers: Optional[int] = None) -> EdgeDescriptor:
    """
    Edge-orientation histogram and edge densities of a buffer.

    Every pixel whose thresholded Sobel mask is set for a channel adds
    its gradient orientation for that channel to the histogram. Each
    channel is normalized by its own edge count.

    Args:
        image: Source buffer.
        threshold: Sobel magnitude threshold in [0, 1].
        workers: Thread count.

    Raises:
        EmptyInput: If the buffer has no pixels.
        InvalidParameter: If threshold is outside [0, 1].
    """
    if image.size == 0:
        raise EmptyInput("Cannot compute edges of an empty image")

    sobel = SobelFilter(threshold).apply(image, workers)
    edges = sobel.edges.pixels
    gradients = sobel.gradients

    def edge_rows(start: int, stop: int):
        local = EdgeHistogram()
        counts = np.zeros(COLOR_CHANNELS, dtype=np.int64)
        mask = edges[start:stop, :, :COLOR_CHANNELS] >= EDGE_MASK_LEVEL
        directions = EdgeHistogram.get_directions(np.degrees(gradients[start:stop]))
        for c in range(COLOR_CHANNELS):
            channel_mask = mask[..., c]
            local.add_edges(c, directions[..., c][channel_mask])
            counts[c] = np.count_nonzero(channel_mask)
        return local, counts

    def merge(acc, partial):
        histogram, counts = acc
        return histogram.combine(partial[0]), counts + partial[1]

    histogram, edge_count = parallel_reduce(
        edge_rows, image.height, merge,
        initial=(EdgeHistogram(), np.zeros(COLOR_CHANNELS, dtype=np.int64)),
        workers=workers,
    )

    if not edge_count.any():
        logger.warning(
            f"No edges above threshold {threshold} in "
            f"{image.width}x{image.height} image"
        )

    histogram.normalize(edge_count)
    densities = tuple(float(n) / image.size for n in edge_count)
    return EdgeDescriptor(histogram, densities)
