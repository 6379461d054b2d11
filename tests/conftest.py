"""Shared test fixtures for image signature tests."""

import numpy as np
import cv2
import pytest

from image_signature.pixels import PixelBuffer

RED = (1.0, 0.0, 0.0, 1.0)
BLUE = (0.0, 0.0, 1.0, 1.0)


@pytest.fixture
def red_square_image():
    """Generate a 64x64 red square on white background."""
    img = np.ones((64, 64, 3), dtype=np.uint8) * 255
    img[16:48, 16:48] = [200, 30, 30]  # Red square
    return img


@pytest.fixture
def blue_circle_image():
    """Generate a 64x64 blue circle on white background."""
    img = np.ones((64, 64, 3), dtype=np.uint8) * 255
    cv2.circle(img, (32, 32), 20, (30, 30, 200), -1)
    return img


@pytest.fixture
def noise_image():
    """Generate a 48x40 random noise image."""
    rng = np.random.RandomState(42)
    return rng.randint(0, 255, (48, 40, 3), dtype=np.uint8)


@pytest.fixture
def red_blue_buffer():
    """2x2 buffer: top row red, bottom row blue."""
    return PixelBuffer.from_colors(2, 2, [RED, RED, BLUE, BLUE])


@pytest.fixture
def noise_buffer(noise_image):
    return PixelBuffer.from_array(noise_image)


@pytest.fixture
def translucent_noise_buffer():
    """Random colors with random alpha, floats in [0, 1]."""
    rng = np.random.RandomState(7)
    return PixelBuffer(rng.rand(23, 17, 4).astype(np.float32))


@pytest.fixture
def square_buffer(red_square_image):
    return PixelBuffer.from_array(red_square_image)


@pytest.fixture
def circle_buffer(blue_circle_image):
    return PixelBuffer.from_array(blue_circle_image)


@pytest.fixture
def vertical_edge_buffer():
    """16x16 opaque image, black left half and white right half."""
    img = np.zeros((16, 16, 4), dtype=np.float32)
    img[:, 8:, :3] = 1.0
    img[..., 3] = 1.0
    return PixelBuffer(img)


@pytest.fixture
def empty_buffer():
    return PixelBuffer(np.zeros((0, 0, 4), dtype=np.float32))
