"""
Histogram distances normalized to [0, 1].

All four models compare two normalized histograms of identical shape
and return 0 for identical inputs:

    city_block     Σ|A - B| / (2 · channels)
    euclidean      sqrt(Σ(A - B)²) / (channels · sqrt(2))
    bhattacharyya  1 - Σ sqrt(A · B) / channels
    mdpa           Σ_c Σ_i |Σ_{j<=i} (A - B)| / (channels · (bins - 1))

MDPA (minimum difference of pair assignments) compares cumulative
distributions, so moving mass to a neighboring bin costs less than
moving it across the range.

``histogram_distance`` dispatches on the HistogramDistance enum through
a lookup table.
"""

import math
import logging
from enum import Enum
from typing import Callable, Dict, Union

import numpy as np

from .config import DISTANCE_MODEL
from .errors import InvalidParameter, ShapeMismatch
from .histograms import Histogram

logger = logging.getLogger(__name__)


class HistogramDistance(Enum):
    CITY_BLOCK = "city_block"
    EUCLIDEAN = "euclidean"
    BHATTACHARYYA = "bhattacharyya"
    MDPA = "mdpa"


def _values(histogram_a: Histogram, histogram_b: Histogram):
    if (histogram_a.channels != histogram_b.channels
            or histogram_a.bins != histogram_b.bins):
        raise ShapeMismatch(
            f"Histograms differ in shape: "
            f"{histogram_a.channels}x{histogram_a.bins} vs "
            f"{histogram_b.channels}x{histogram_b.bins}"
        )
    return histogram_a.values, histogram_b.values


def _clamp(distance: float) -> float:
    # Float rounding can push an exact 0 or 1 slightly out of range
    return float(min(max(distance, 0.0), 1.0))


def city_block_distance(histogram_a: Histogram, histogram_b: Histogram) -> float:
    a, b = _values(histogram_a, histogram_b)
    # Each channel sums to at most 2
    return _clamp(np.abs(a - b).sum() / (2 * histogram_a.channels))


def euclidean_distance(histogram_a: Histogram, histogram_b: Histogram) -> float:
    a, b = _values(histogram_a, histogram_b)
    diff = a - b
    return _clamp(
        math.sqrt(float((diff * diff).sum())) / (histogram_a.channels * math.sqrt(2))
    )


def bhattacharyya_distance(histogram_a: Histogram, histogram_b: Histogram) -> float:
    """
    One minus the Bhattacharyya coefficient, averaged over channels.

    The coefficient itself is a similarity in [0, 1]; -ln(BC) would be
    unbounded, so the coefficient is inverted instead.
    """
    a, b = _values(histogram_a, histogram_b)
    coefficient = np.sqrt(a * b).sum() / histogram_a.channels
    return _clamp(1.0 - coefficient)


def mdpa_distance(histogram_a: Histogram, histogram_b: Histogram) -> float:
    a, b = _values(histogram_a, histogram_b)
    cumulative = np.cumsum(a - b, axis=1)
    denominator = histogram_a.channels * (histogram_a.bins - 1)
    if denominator == 0:
        return 0.0
    return _clamp(np.abs(cumulative).sum() / denominator)


DISTANCE_FUNCTIONS: Dict[HistogramDistance, Callable[[Histogram, Histogram], float]] = {
    HistogramDistance.CITY_BLOCK: city_block_distance,
    HistogramDistance.EUCLIDEAN: euclidean_distance,
    HistogramDistance.BHATTACHARYYA: bhattacharyya_distance,
    HistogramDistance.MDPA: mdpa_distance,
}


def resolve_model(model: Union[HistogramDistance, str, None]) -> HistogramDistance:
    """Accept an enum member, its value ("mdpa"), or None for the default."""
    if model is None:
        model = DISTANCE_MODEL
    if isinstance(model, HistogramDistance):
        return model
    try:
        return HistogramDistance(str(model).lower())
    except ValueError:
        valid = ", ".join(m.value for m in HistogramDistance)
        raise InvalidParameter(
            f"Unknown distance model {model!r}, expected one of: {valid}"
        ) from None


def histogram_distance(histogram_a: Histogram, histogram_b: Histogram,
                       model: Union[HistogramDistance, str, None] = None) -> float:
    """
    Distance between two histograms under the given model.

    Returns:
        0 for identical histograms, up to 1 for completely different.

    Raises:
        ShapeMismatch: If channels or bins differ.
        InvalidParameter: If the model is unknown.
    """
    return DISTANCE_FUNCTIONS[resolve_model(model)](histogram_a, histogram_b)
