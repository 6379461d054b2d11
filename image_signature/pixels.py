"""
Pixel buffer: the single input type of every descriptor pass.

A PixelBuffer wraps a read-only float32 array of shape
(height, width, 4) holding row-major RGBA colors. Channels are
conventionally in [0, 1] but are never clamped here; filter outputs
may overshoot.

Image decoding is left to the caller. ``from_array`` only adapts
in-memory numpy images (uint8 or float, gray, RGB or RGBA) to the
buffer layout.
"""

import logging
from typing import Sequence, Tuple

import cv2
import numpy as np

from .errors import InvalidParameter
from .numeric import clamp01, safe_divide

logger = logging.getLogger(__name__)

CHANNELS = 4
COLOR_CHANNELS = 3


class PixelBuffer:
    """Immutable RGBA float image."""

    __slots__ = ("_pixels",)

    def __init__(self, pixels: np.ndarray):
        pixels = np.array(pixels, dtype=np.float32, copy=True)
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise InvalidParameter(
                f"Pixel array must have shape (height, width, 4), "
                f"got {pixels.shape}"
            )
        pixels.setflags(write=False)
        self._pixels = pixels

    @classmethod
    def _adopt(cls, pixels: np.ndarray) -> "PixelBuffer":
        # Takes ownership of a freshly allocated float32 array without copying
        buffer = cls.__new__(cls)
        pixels.setflags(write=False)
        buffer._pixels = pixels
        return buffer

    @classmethod
    def from_colors(cls, width: int, height: int,
                    colors: Sequence[Sequence[float]]) -> "PixelBuffer":
        """Build a buffer from a flat row-major sequence of RGBA tuples."""
        colors = np.asarray(colors, dtype=np.float32)
        if colors.shape != (width * height, CHANNELS):
            raise InvalidParameter(
                f"Expected {width * height} RGBA colors for a "
                f"{width}x{height} buffer, got array of shape {colors.shape}"
            )
        return cls(colors.reshape(height, width, CHANNELS))

    @classmethod
    def from_array(cls, image_np: np.ndarray) -> "PixelBuffer":
        """
        Adapt a numpy image to a PixelBuffer.

        uint8 input is scaled to [0, 1]; float input is taken as is.
        Grayscale and RGB inputs get an opaque alpha channel.

        Args:
            image_np: (H, W), (H, W, 3) or (H, W, 4) array, RGB order.
        """
        if image_np.dtype == np.uint8:
            image = image_np.astype(np.float32) / 255.0
        else:
            image = image_np.astype(np.float32)

        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
        elif image.ndim == 3 and image.shape[2] == COLOR_CHANNELS:
            image = cv2.cvtColor(image, cv2.COLOR_RGB2RGBA)
        elif not (image.ndim == 3 and image.shape[2] == CHANNELS):
            raise InvalidParameter(
                f"Unsupported image shape {image_np.shape}"
            )
        return cls(image)

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width

    def to_color32(self) -> np.ndarray:
        """8-bit RGBA copy of the buffer: round(clamp01(c) * 255)."""
        return np.rint(clamp01(self._pixels) * 255.0).astype(np.uint8)

    def __eq__(self, other):
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return np.array_equal(self._pixels, other._pixels)

    __hash__ = None

    def __repr__(self):
        return f"PixelBuffer(width={self.width}, height={self.height})"


def get_min_max(image: PixelBuffer) -> Tuple[np.ndarray, np.ndarray]:
    """Per-channel RGB minimum and maximum over the whole buffer."""
    rgb = image.pixels[..., :COLOR_CHANNELS].reshape(-1, COLOR_CHANNELS)
    if rgb.shape[0] == 0:
        return (np.full(COLOR_CHANNELS, np.finfo(np.float32).max),
                np.full(COLOR_CHANNELS, np.finfo(np.float32).min))
    return rgb.min(axis=0), rgb.max(axis=0)


def stretch_image(image: PixelBuffer,
                  new_min: float = 0.0,
                  new_max: float = 1.0) -> PixelBuffer:
    """
    Linearly remap each RGB channel from its [min, max] to [new_min, new_max].

    Used to make filter responses viewable. A flat channel (max == min)
    maps to new_min. The result is fully opaque.
    """
    low, high = get_min_max(image)
    scale = safe_divide(new_max - new_min, high.astype(np.float64) - low)

    out = np.ones_like(image.pixels)
    out[..., :COLOR_CHANNELS] = (
        (image.pixels[..., :COLOR_CHANNELS] - low) * scale + new_min
    )
    return PixelBuffer._adopt(out)
