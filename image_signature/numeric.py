"""Division and clamping helpers shared by the accumulators."""

import numpy as np

from .config import SAFE_DIVIDE_EPSILON


def safe_divide(numerator, denominator, threshold: float = SAFE_DIVIDE_EPSILON):
    """
    Divide, returning 0 where ``|denominator| <= threshold``.

    Works on python scalars and numpy arrays alike. With arrays the
    result has the broadcast shape of both operands and is float64.
    """
    if np.ndim(numerator) == 0 and np.ndim(denominator) == 0:
        if abs(denominator) > threshold:
            return numerator / denominator
        return 0.0

    numerator = np.asarray(numerator, dtype=np.float64)
    denominator = np.asarray(denominator, dtype=np.float64)
    out = np.zeros(np.broadcast(numerator, denominator).shape, dtype=np.float64)
    np.divide(numerator, denominator, out=out,
              where=np.abs(denominator) > threshold)
    return out


def clamp01(values):
    return np.clip(values, 0.0, 1.0)
