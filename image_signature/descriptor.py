"""
Image descriptor pipeline.

Runs every extractor over one PixelBuffer and packs the results into an
ImageData record:

    1. Color histogram + best colors + best shades (one pass)
    2. Sobel edges -> edge-orientation histogram + edge densities
    3. Moment invariants -> geometric moments

The record is plain data; storing and indexing it is up to the caller.
Two records are compared through their histograms with any of the
distance models in ``distances``.
"""

import time
import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from .config import SOBEL_THRESHOLD, TOP_K
from .distances import HistogramDistance, histogram_distance
from .histograms import EdgeHistogram, Histogram, compute_edge_histogram
from .moments import compute_moment_invariants
from .pixels import PixelBuffer
from .quantization import ColorInfo, compute_best_colors_and_histogram

logger = logging.getLogger(__name__)

# Bumped whenever the layout or meaning of ImageData changes
IMAGE_DATA_VERSION = 3


def compute_id(key: Union[str, bytes]) -> str:
    """128-bit hex identifier of a caller-chosen key (asset path, URL...)."""
    if isinstance(key, str):
        key = key.encode("utf-8")
    return hashlib.md5(key).hexdigest()


@dataclass(frozen=True)
class ImageData:
    """
    Descriptors of one image.

    Attributes:
        id: 128-bit hex identifier.
        best_colors: Most frequent exact colors, padded to top_k.
        best_shades: Most populated RGB grid cells, padded to top_k.
        histogram: Normalized 256-bin RGB histogram.
        edge_histogram: Normalized 4-bin edge-orientation histogram.
        edge_densities: Fraction of edge pixels per RGB channel.
        geometric_moments: First-order moment invariant per RGB channel.
        second_order_moments: Second-order moment invariant per RGB channel.
    """

    id: str
    best_colors: Tuple[ColorInfo, ...]
    best_shades: Tuple[ColorInfo, ...]
    histogram: Histogram
    edge_histogram: EdgeHistogram
    edge_densities: Tuple[float, float, float]
    geometric_moments: Tuple[float, float, float]
    second_order_moments: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        """Plain python types only, ready for JSON or a metadata store."""
        return {
            "version": IMAGE_DATA_VERSION,
            "id": self.id,
            "best_colors": [info._asdict() for info in self.best_colors],
            "best_shades": [info._asdict() for info in self.best_shades],
            "histogram": self.histogram.to_list(),
            "edge_histogram": self.edge_histogram.to_list(),
            "edge_densities": list(self.edge_densities),
            "geometric_moments": list(self.geometric_moments),
            "second_order_moments": list(self.second_order_moments),
        }


def compute_image_data(image: PixelBuffer,
                       key: Union[str, bytes] = "",
                       top_k: int = TOP_K,
                       sobel_threshold: float = SOBEL_THRESHOLD,
                       workers: Optional[int] = None) -> ImageData:
    """
    Extract every descriptor of an image.

    Args:
        image: Source buffer.
        key: Value hashed into ImageData.id.
        top_k: Number of best colors and best shades.
        sobel_threshold: Edge threshold in [0, 1].
        workers: Thread count for every pass.

    Raises:
        EmptyInput: If the buffer has no pixels.
        InvalidParameter: On an out-of-range threshold or negative top_k.
    """
    started = time.perf_counter()

    colors = compute_best_colors_and_histogram(image, top_k, workers)
    edges = compute_edge_histogram(image, sobel_threshold, workers)
    invariants = compute_moment_invariants(image, workers)

    data = ImageData(
        id=compute_id(key),
        best_colors=colors.best_colors,
        best_shades=colors.best_shades,
        histogram=colors.histogram,
        edge_histogram=edges.histogram,
        edge_densities=edges.densities,
        geometric_moments=invariants.first_order,
        second_order_moments=invariants.second_order,
    )

    logger.info(
        f"Extracted descriptors for {image.width}x{image.height} image "
        f"in {time.perf_counter() - started:.3f}s"
    )
    return data


def compare_images(data_a: ImageData, data_b: ImageData,
                   model: Union[HistogramDistance, str, None] = None) -> float:
    """Color-histogram distance between two records, 0 = identical."""
    return histogram_distance(data_a.histogram, data_b.histogram, model)


def compare_edges(data_a: ImageData, data_b: ImageData,
                  model: Union[HistogramDistance, str, None] = None) -> float:
    """Edge-orientation-histogram distance between two records."""
    return histogram_distance(data_a.edge_histogram, data_b.edge_histogram, model)
