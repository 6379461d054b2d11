"""
Image moments and scale-invariant moment descriptors.

Each RGB channel is treated as an intensity distribution over pixel
coordinates (x = column, y = row):

    raw moment       M[p,q] = Σ x^p · y^q · I(x, y)
    centroid         (M[1,0] / M[0,0], M[0,1] / M[0,0])
    central moment   μ[p,q] = Σ (x - cx)^p · (y - cy)^q · I(x, y)
    normalized       η[p,q] = μ[p,q] / M[0,0]^(1 + (p + q) / 2)

From the normalized second-order moments two invariants are derived
per channel:

    first order   η20 + η02                   (spread, scale invariant)
    second order  (η20 - η02)² + 4·η11²       (elongation, also rotation invariant)

These are the first two Hu invariants. A factor of 0 (x^0, y^0) is
always 1, including at the origin. Sums are computed per row band and
added together after all bands finish. A channel with no mass
(M[0,0] == 0) produces 0 rather than NaN.
"""

import logging
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .errors import EmptyInput, InvalidParameter
from .numeric import safe_divide
from .parallel import parallel_reduce
from .pixels import COLOR_CHANNELS, PixelBuffer

logger = logging.getLogger(__name__)


class MomentOrder(NamedTuple):
    p: int
    q: int


class Centroid(NamedTuple):
    x: float
    y: float


ORIGIN = Centroid(0.0, 0.0)

M00 = MomentOrder(0, 0)
M10 = MomentOrder(1, 0)
M01 = MomentOrder(0, 1)
M20 = MomentOrder(2, 0)
M02 = MomentOrder(0, 2)
M11 = MomentOrder(1, 1)


class MomentInvariants(NamedTuple):
    """Per-channel first- and second-order moment invariants."""
    first_order: Tuple[float, float, float]
    second_order: Tuple[float, float, float]


def _axis_factor(coords: np.ndarray, center: float, power: int) -> np.ndarray:
    if power == 0:
        return np.ones_like(coords)
    return (coords - center) ** power


def compute_central_moments(image: PixelBuffer,
                            moment_orders: Sequence[MomentOrder],
                            centroids: Sequence[Centroid],
                            workers: Optional[int] = None) -> np.ndarray:
    """
    Central moments of each requested order, per channel.

    Args:
        image: Source buffer. Alpha is ignored.
        moment_orders: (p, q) pairs to compute.
        centroids: One centroid per RGB channel.
        workers: Thread count.

    Returns:
        (len(moment_orders), 3) float64 array.

    Raises:
        InvalidParameter: If there are not exactly 3 centroids.
        EmptyInput: If the buffer has no pixels.
    """
    if len(centroids) != COLOR_CHANNELS:
        raise InvalidParameter(
            f"There should be {COLOR_CHANNELS} centroids, one for each "
            f"channel, got {len(centroids)}"
        )
    if image.size == 0:
        raise EmptyInput("Cannot compute moments of an empty image")

    orders = [MomentOrder(*order) for order in moment_orders]
    rgb = image.pixels[..., :COLOR_CHANNELS]
    xs = np.arange(image.width, dtype=np.float64)

    def moment_rows(start: int, stop: int) -> np.ndarray:
        ys = np.arange(start, stop, dtype=np.float64)
        band = rgb[start:stop].astype(np.float64)
        local_sums = np.zeros((len(orders), COLOR_CHANNELS), dtype=np.float64)
        for l, order in enumerate(orders):
            for k in range(COLOR_CHANNELS):
                dx = _axis_factor(xs, centroids[k].x, order.p)
                dy = _axis_factor(ys, centroids[k].y, order.q)
                local_sums[l, k] = dy @ band[..., k] @ dx
        return local_sums

    return parallel_reduce(
        moment_rows, image.height,
        merge=lambda acc, partial: acc + partial,
        initial=np.zeros((len(orders), COLOR_CHANNELS), dtype=np.float64),
        workers=workers,
    )


def compute_raw_moments(image: PixelBuffer,
                        moment_orders: Sequence[MomentOrder],
                        workers: Optional[int] = None) -> np.ndarray:
    return compute_central_moments(
        image, moment_orders, [ORIGIN] * COLOR_CHANNELS, workers
    )


def compute_raw_moment(image: PixelBuffer, p: int, q: int,
                       workers: Optional[int] = None) -> np.ndarray:
    """Raw moment M[p,q] of each RGB channel, shape (3,)."""
    return compute_raw_moments(image, [MomentOrder(p, q)], workers)[0]


def compute_central_moment(image: PixelBuffer, p: int, q: int,
                           centroids: Sequence[Centroid],
                           workers: Optional[int] = None) -> np.ndarray:
    return compute_central_moments(image, [MomentOrder(p, q)], centroids, workers)[0]


def compute_centroids_and_areas(image: PixelBuffer,
                                workers: Optional[int] = None
                                ) -> Tuple[List[Centroid], np.ndarray]:
    """
    Per-channel centroids and areas (M[0,0]).

    A channel with zero mass gets its centroid at the origin.
    """
    moments = compute_raw_moments(image, [M00, M10, M01], workers)
    m00, m10, m01 = moments

    if np.any(m00 == 0):
        empty = [c for c in range(COLOR_CHANNELS) if m00[c] == 0]
        logger.warning(f"Channels {empty} have zero mass; their moments are 0")

    cx = safe_divide(m10, m00)
    cy = safe_divide(m01, m00)
    centroids = [Centroid(float(cx[k]), float(cy[k])) for k in range(COLOR_CHANNELS)]
    return centroids, m00


def central_moment_to_scale_invariant(central_moment: np.ndarray,
                                      areas: np.ndarray,
                                      moment_order: MomentOrder) -> np.ndarray:
    """η[p,q] = μ[p,q] / area^(1 + (p + q) / 2), per channel."""
    exponent = 1 + (moment_order.p + moment_order.q) / 2.0
    return safe_divide(central_moment, np.power(areas, exponent))


def _normalized_second_moments(image: PixelBuffer, workers: Optional[int]):
    centroids, areas = compute_centroids_and_areas(image, workers)
    mu20, mu02, mu11 = compute_central_moments(
        image, [M20, M02, M11], centroids, workers
    )
    return (
        central_moment_to_scale_invariant(mu20, areas, M20),
        central_moment_to_scale_invariant(mu02, areas, M02),
        central_moment_to_scale_invariant(mu11, areas, M11),
    )


def _first_order(n20, n02) -> np.ndarray:
    return n20 + n02


def _second_order(n20, n02, n11) -> np.ndarray:
    diff = n20 - n02
    return diff * diff + 4 * (n11 * n11)


def compute_first_order_invariant(image: PixelBuffer,
                                  workers: Optional[int] = None) -> np.ndarray:
    """η20 + η02 per channel, shape (3,)."""
    n20, n02, _ = _normalized_second_moments(image, workers)
    return _first_order(n20, n02)


def compute_second_order_invariant(image: PixelBuffer,
                                   workers: Optional[int] = None) -> np.ndarray:
    """(η20 - η02)² + 4·η11² per channel, shape (3,)."""
    n20, n02, n11 = _normalized_second_moments(image, workers)
    return _second_order(n20, n02, n11)


def compute_moment_invariants(image: PixelBuffer,
                              workers: Optional[int] = None) -> MomentInvariants:
    """Both invariants from a single set of moment passes."""
    n20, n02, n11 = _normalized_second_moments(image, workers)
    return MomentInvariants(
        tuple(float(v) for v in _first_order(n20, n02)),
        tuple(float(v) for v in _second_order(n20, n02, n11)),
    )
