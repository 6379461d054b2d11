"""
Dominant-color extraction: best colors and best shades.

Best colors are the most frequent exact 8-bit RGBA values. Best shades
come from a coarse spatial quantization of RGB space: each axis is cut
into 8 buckets of 32 values, giving 512 cells indexed
``(r * 8 + g) * 8 + b``. Every cell keeps a member count and a running
integer average color, so a shade is the mean of the pixels that fell
into a region rather than the region's corner.

Both rankings are stable: equal counts keep first-occurrence order for
exact colors and cell order for shades. Results are padded with empty
entries (color 0, ratio 0) up to the requested size, so every record
has the same shape.
"""

import logging
from collections import Counter
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .colors import color_to_int, format_color, pack_colors
from .config import TOP_K
from .errors import EmptyInput, InvalidParameter
from .histograms import Histogram
from .parallel import parallel_reduce
from .pixels import PixelBuffer

logger = logging.getLogger(__name__)

AXIS_DIVISIONS = 8
BUCKET_SIZE = 256 // AXIS_DIVISIONS
CELL_COUNT = AXIS_DIVISIONS ** 3


class ColorInfo(NamedTuple):
    """A packed RGBA color and the fraction of pixels it stands for."""
    color: int
    ratio: float

    def __str__(self):
        return f"{format_color(self.color)} [{self.ratio * 100}%]"


EMPTY_COLOR_INFO = ColorInfo(0, 0.0)


class ColorCluster:
    """
    Running integer average of the colors added to it.

    ``average`` is ``totals // count`` per channel, recomputed on every
    addition or merge.
    """

    __slots__ = ("count", "totals", "average")

    def __init__(self, count: int = 0, totals: Sequence[int] = (0, 0, 0, 0)):
        self.count = int(count)
        self.totals = [int(t) for t in totals]
        self.average = self._compute_average()

    def _compute_average(self) -> Tuple[int, int, int, int]:
        if self.count == 0:
            return 0, 0, 0, 0
        return tuple((t // self.count) & 0xFF for t in self.totals)

    def add_color(self, color: Sequence[int]) -> None:
        self.count += 1
        for i in range(4):
            self.totals[i] += int(color[i])
        self.average = self._compute_average()

    def combine(self, other: "ColorCluster") -> None:
        """Count-weighted merge. An empty cluster is a no-op."""
        if other.count == 0:
            return
        self.count += other.count
        for i in range(4):
            self.totals[i] += other.totals[i]
        self.average = self._compute_average()

    def __repr__(self):
        return f"ColorCluster(count={self.count}, average={self.average})"


def axis_index(value: int) -> int:
    return int(value) // BUCKET_SIZE


def cell_index(color: Sequence[int]) -> int:
    return ((axis_index(color[0]) * AXIS_DIVISIONS + axis_index(color[1]))
            * AXIS_DIVISIONS + axis_index(color[2]))


class RGBClusters:
    """
    The 512-cell RGB grid.

    Counts and channel totals are kept as arrays so whole pixel bands
    can be accumulated at once; ColorCluster views are built on demand.
    """

    def __init__(self):
        self.counts = np.zeros(CELL_COUNT, dtype=np.int64)
        self.totals = np.zeros((CELL_COUNT, 4), dtype=np.int64)

    @classmethod
    def from_pixels(cls, color32: np.ndarray) -> "RGBClusters":
        clusters = cls()
        clusters.add_colors(color32)
        return clusters

    def add_color(self, color: Sequence[int]) -> None:
        index = cell_index(color)
        self.counts[index] += 1
        self.totals[index] += np.asarray(color[:4], dtype=np.int64)

    def add_colors(self, color32: np.ndarray) -> None:
        flat = np.asarray(color32).reshape(-1, 4).astype(np.int64)
        axes = flat[:, :3] // BUCKET_SIZE
        cells = (axes[:, 0] * AXIS_DIVISIONS + axes[:, 1]) * AXIS_DIVISIONS + axes[:, 2]
        self.counts += np.bincount(cells, minlength=CELL_COUNT)
        for i in range(4):
            self.totals[:, i] += np.bincount(
                cells, weights=flat[:, i], minlength=CELL_COUNT
            ).astype(np.int64)

    def combine(self, other: "RGBClusters") -> "RGBClusters":
        """Cell-wise merge. Returns self."""
        occupied = other.counts > 0
        self.counts[occupied] += other.counts[occupied]
        self.totals[occupied] += other.totals[occupied]
        return self

    def cluster(self, index: int) -> ColorCluster:
        return ColorCluster(self.counts[index], self.totals[index])

    def get_best_clusters(self, count: int) -> List[ColorCluster]:
        """The ``count`` most populated cells, ties in cell order."""
        order = np.argsort(-self.counts, kind="stable")[:count]
        return [self.cluster(i) for i in order]

    def __len__(self):
        return CELL_COUNT


class ColorSummary(NamedTuple):
    """Normalized color histogram plus best colors and best shades."""
    histogram: Histogram
    best_colors: Tuple[ColorInfo, ...]
    best_shades: Tuple[ColorInfo, ...]


class _LocalColorMap(NamedTuple):
    histogram: Histogram
    color_counts: Counter
    clusters: RGBClusters


def count_colors(color32: np.ndarray) -> Counter:
    """
    Exact color counts of an (..., 4) uint8 array, keyed by packed u32.

    Keys are inserted in order of first occurrence, which is what
    Counter.most_common uses to break ties.
    """
    packed = pack_colors(np.asarray(color32).reshape(-1, 4))
    values, first_index, counts = np.unique(
        packed, return_index=True, return_counts=True
    )
    order = np.argsort(first_index, kind="stable")
    return Counter(dict(zip(values[order].tolist(), counts[order].tolist())))


def _pad(infos: List[ColorInfo], size: int) -> Tuple[ColorInfo, ...]:
    return tuple(infos + [EMPTY_COLOR_INFO] * (size - len(infos)))


def best_colors(color_counts: Counter, total: int, top_k: int) -> Tuple[ColorInfo, ...]:
    infos = [ColorInfo(int(color), count / total)
             for color, count in color_counts.most_common(top_k)]
    return _pad(infos, top_k)


def best_shades(clusters: RGBClusters, total: int, top_k: int) -> Tuple[ColorInfo, ...]:
    infos = [ColorInfo(color_to_int(cluster.average), cluster.count / total)
             for cluster in clusters.get_best_clusters(top_k)]
    return _pad(infos, top_k)


def compute_best_colors_and_histogram(image: PixelBuffer,
                                      top_k: int = TOP_K,
                                      workers: Optional[int] = None) -> ColorSummary:
    """
    One pass over the pixels building the color histogram, the exact
    color counts and the RGB grid, then ranking colors and shades.

    Args:
        image: Source buffer; colors are quantized to 8 bits first.
        top_k: Number of best colors and best shades to return.
        workers: Thread count.

    Raises:
        EmptyInput: If the buffer has no pixels.
        InvalidParameter: If top_k is negative.
    """
    if image.size == 0:
        raise EmptyInput("Cannot extract colors of an empty image")
    if top_k < 0:
        raise InvalidParameter(f"top_k must be >= 0, got {top_k}")

    color32 = image.to_color32()

    def color_rows(start: int, stop: int) -> _LocalColorMap:
        band = color32[start:stop]
        return _LocalColorMap(
            Histogram.from_pixels(band),
            count_colors(band),
            RGBClusters.from_pixels(band),
        )

    def merge(acc: _LocalColorMap, partial: _LocalColorMap) -> _LocalColorMap:
        acc.histogram.combine(partial.histogram)
        acc.color_counts.update(partial.color_counts)
        acc.clusters.combine(partial.clusters)
        return acc

    merged = parallel_reduce(
        color_rows, image.height, merge,
        initial=_LocalColorMap(Histogram(), Counter(), RGBClusters()),
        workers=workers,
    )

    total = image.size
    merged.histogram.normalize(total)

    logger.debug(
        f"{len(merged.color_counts)} distinct colors, "
        f"{int(np.count_nonzero(merged.clusters.counts))} occupied cells"
    )

    return ColorSummary(
        merged.histogram,
        best_colors(merged.color_counts, total, top_k),
        best_shades(merged.clusters, total, top_k),
    )
