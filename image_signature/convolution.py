"""
2D convolution over PixelBuffers.

Taps are alpha-weighted: each neighbor contributes
``factor * kernel * alpha * color``. Taps falling outside the image are
skipped rather than clamped or wrapped, so the effective kernel weight
shrinks near the borders. The output alpha is copied from the source
pixel. The kernel is mirrored (true convolution, not correlation).

Rows are processed in bands on worker threads; each band writes only
its own output rows, so the result is deterministic.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .errors import DimensionMismatch, InvalidParameter
from .numeric import safe_divide
from .parallel import run_bands
from .pixels import COLOR_CHANNELS, PixelBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Kernel:
    """
    Immutable convolution kernel.

    Attributes:
        size_x: Kernel width (odd).
        size_y: Kernel height (odd).
        values: Row-major weights, ``size_x * size_y`` of them.
        factor: Scale applied to every weight. Defaults to
            ``1 / sum(values)``, or 0 when the weights sum to 0.
    """

    size_x: int
    size_y: int
    values: Tuple[float, ...]
    factor: Optional[float] = None

    def __post_init__(self):
        if self.size_x <= 0 or self.size_y <= 0:
            raise InvalidParameter(
                f"Kernel sizes must be positive, got {self.size_x}x{self.size_y}"
            )
        if self.size_x % 2 == 0 or self.size_y % 2 == 0:
            raise InvalidParameter(
                f"Kernel sizes must be odd, got {self.size_x}x{self.size_y}"
            )

        values = tuple(float(v) for v in self.values)
        if len(values) != self.size_x * self.size_y:
            raise InvalidParameter(
                f"Kernel {self.size_x}x{self.size_y} needs "
                f"{self.size_x * self.size_y} values, got {len(values)}"
            )
        object.__setattr__(self, "values", values)

        if self.factor is None:
            object.__setattr__(self, "factor", safe_divide(1.0, sum(values)))
        else:
            object.__setattr__(self, "factor", float(self.factor))

    @classmethod
    def from_array(cls, weights: Sequence[Sequence[float]],
                   factor: Optional[float] = None) -> "Kernel":
        weights = np.asarray(weights, dtype=np.float64)
        if weights.ndim == 1:
            weights = weights.reshape(1, -1)
        size_y, size_x = weights.shape
        return cls(size_x, size_y, tuple(weights.ravel()), factor)

    def __getitem__(self, yx: Tuple[int, int]) -> float:
        y, x = yx
        return self.values[y * self.size_x + x]

    @property
    def half_x(self) -> int:
        return self.size_x // 2

    @property
    def half_y(self) -> int:
        return self.size_y // 2

    def to_array(self) -> np.ndarray:
        """Weights as a (size_y, size_x) float64 array, factor not applied."""
        return np.array(self.values, dtype=np.float64).reshape(
            self.size_y, self.size_x
        )


def convolve(texture: PixelBuffer, kernel: Kernel,
             workers: Optional[int] = None) -> PixelBuffer:
    """
    Convolve a buffer with a kernel.

    For output pixel (x, y) and offsets m in [-half_y, half_y],
    n in [-half_x, half_x], the tap at (x + n, y + m) is weighted by
    ``kernel[half_y - m, half_x - n]`` and skipped if outside the image.

    Args:
        texture: Source buffer.
        kernel: Kernel to apply.
        workers: Thread count for the row bands.

    Returns:
        A new buffer of the same size.
    """
    height, width = texture.shape
    pixels = texture.pixels

    # Premultiplied color is what every tap reads
    weighted = pixels[..., :COLOR_CHANNELS] * pixels[..., 3:4]
    taps = (kernel.to_array() * kernel.factor).astype(np.float32)
    half_x, half_y = kernel.half_x, kernel.half_y

    output = np.empty_like(pixels)
    output[..., 3] = pixels[..., 3]

    def convolve_rows(start: int, stop: int) -> None:
        acc = np.zeros((stop - start, width, COLOR_CHANNELS), dtype=np.float32)
        for m in range(-half_y, half_y + 1):
            row_lo = max(start, -m)
            row_hi = min(stop, height - m)
            if row_lo >= row_hi:
                continue
            for n in range(-half_x, half_x + 1):
                col_lo = max(0, -n)
                col_hi = min(width, width - n)
                if col_lo >= col_hi:
                    continue
                acc[row_lo - start:row_hi - start, col_lo:col_hi] += (
                    taps[half_y - m, half_x - n]
                    * weighted[row_lo + m:row_hi + m, col_lo + n:col_hi + n]
                )
        output[start:stop, :, :COLOR_CHANNELS] = acc

    run_bands(convolve_rows, height, workers=workers)

    logger.debug(
        f"Convolved {width}x{height} buffer with "
        f"{kernel.size_x}x{kernel.size_y} kernel"
    )
    return PixelBuffer._adopt(output)


def subtract(source_a: PixelBuffer, source_b: PixelBuffer) -> PixelBuffer:
    """
    Channel-wise ``a - b`` over all four channels.

    Raises:
        DimensionMismatch: If the buffers differ in width or height.
    """
    if source_a.shape != source_b.shape:
        raise DimensionMismatch(
            f"Images don't have the same size: "
            f"{source_a.width}x{source_a.height} vs "
            f"{source_b.width}x{source_b.height}"
        )
    return PixelBuffer._adopt(source_a.pixels - source_b.pixels)
