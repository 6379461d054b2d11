"""
Color packing, color-space conversion and color distances.

Colors come in two forms:
    Color32  8-bit RGBA tuple/array, packed into a u32 as r<<24|g<<16|b<<8|a
    Color    float RGBA in [0, 1], as stored in a PixelBuffer

Conversions follow the usual sRGB -> XYZ -> CIE L*a*b* chain with a
selectable observer/illuminant white point (2 degree D65 by default).
"""

import math
from enum import Enum
from typing import Sequence, Tuple

import numpy as np

# Distance between black and white in unit RGB
MAX_COLOR_DISTANCE = math.sqrt(3.0)


def color_to_int(color: Sequence[int]) -> int:
    """Pack an 8-bit RGBA color into a u32."""
    r, g, b, a = (int(v) & 0xFF for v in color)
    return (r << 24) | (g << 16) | (b << 8) | a


def int_to_color32(value: int) -> Tuple[int, int, int, int]:
    value = int(value)
    return ((value >> 24) & 0xFF, (value >> 16) & 0xFF,
            (value >> 8) & 0xFF, value & 0xFF)


def pack_colors(color32: np.ndarray) -> np.ndarray:
    """Vectorized color_to_int over an (..., 4) uint8 array."""
    c = np.asarray(color32).astype(np.uint32)
    return (c[..., 0] << 24) | (c[..., 1] << 16) | (c[..., 2] << 8) | c[..., 3]


def format_color(value: int) -> str:
    r, g, b, a = int_to_color32(value)
    return f"RGBA({r}, {g}, {b}, {a})"


def color32_square_distance(color_a: Sequence[int], color_b: Sequence[int]) -> int:
    return sum((int(color_b[i]) - int(color_a[i])) ** 2 for i in range(3))


def color32_distance(color_a: Sequence[int], color_b: Sequence[int]) -> float:
    return math.sqrt(color32_square_distance(color_a, color_b))


def color_square_distance(color_a: Sequence[float], color_b: Sequence[float]) -> float:
    return sum((float(color_b[i]) - float(color_a[i])) ** 2 for i in range(3))


def color_distance(color_a: Sequence[float], color_b: Sequence[float]) -> float:
    """Euclidean RGB distance between two float colors, alpha ignored."""
    return math.sqrt(color_square_distance(color_a, color_b))


class XYZObserver(Enum):
    TWO_DEG = "2"
    TEN_DEG = "10"


class XYZIlluminant(Enum):
    A = "A"
    B = "B"
    C = "C"
    D50 = "D50"
    D55 = "D55"
    D65 = "D65"
    D75 = "D75"
    E = "E"
    F1 = "F1"
    F2 = "F2"
    F3 = "F3"
    F4 = "F4"
    F5 = "F5"
    F6 = "F6"
    F7 = "F7"
    F8 = "F8"
    F9 = "F9"
    F10 = "F10"
    F11 = "F11"
    F12 = "F12"


# Reference white points (X, Y, Z), Y normalized to 100
XYZ_REFERENCES = {
    XYZObserver.TWO_DEG: {
        XYZIlluminant.A: (109.850, 100.000, 35.585),
        XYZIlluminant.B: (99.0927, 100.000, 85.313),
        XYZIlluminant.C: (98.074, 100.000, 118.232),
        XYZIlluminant.D50: (96.422, 100.000, 82.521),
        XYZIlluminant.D55: (95.682, 100.000, 92.149),
        XYZIlluminant.D65: (95.047, 100.000, 108.883),
        XYZIlluminant.D75: (94.972, 100.000, 122.638),
        XYZIlluminant.E: (100.000, 100.000, 100.000),
        XYZIlluminant.F1: (92.834, 100.000, 103.665),
        XYZIlluminant.F2: (99.187, 100.000, 67.395),
        XYZIlluminant.F3: (103.754, 100.000, 49.861),
        XYZIlluminant.F4: (109.147, 100.000, 38.813),
        XYZIlluminant.F5: (90.872, 100.000, 98.723),
        XYZIlluminant.F6: (97.309, 100.000, 60.191),
        XYZIlluminant.F7: (95.044, 100.000, 108.755),
        XYZIlluminant.F8: (96.413, 100.000, 82.333),
        XYZIlluminant.F9: (100.365, 100.000, 67.868),
        XYZIlluminant.F10: (96.174, 100.000, 81.712),
        XYZIlluminant.F11: (100.966, 100.000, 64.370),
        XYZIlluminant.F12: (108.046, 100.000, 39.228),
    },
    XYZObserver.TEN_DEG: {
        XYZIlluminant.A: (111.144, 100.000, 35.200),
        XYZIlluminant.B: (99.178, 100.000, 84.3493),
        XYZIlluminant.C: (97.285, 100.000, 116.145),
        XYZIlluminant.D50: (96.720, 100.000, 81.427),
        XYZIlluminant.D55: (95.799, 100.000, 90.926),
        XYZIlluminant.D65: (94.811, 100.000, 107.304),
        XYZIlluminant.D75: (94.416, 100.000, 120.641),
        XYZIlluminant.E: (100.000, 100.000, 100.000),
        XYZIlluminant.F1: (94.791, 100.000, 103.191),
        XYZIlluminant.F2: (103.280, 100.000, 69.026),
        XYZIlluminant.F3: (108.968, 100.000, 51.965),
        XYZIlluminant.F4: (114.961, 100.000, 40.963),
        XYZIlluminant.F5: (93.369, 100.000, 98.636),
        XYZIlluminant.F6: (102.148, 100.000, 62.074),
        XYZIlluminant.F7: (95.792, 100.000, 107.687),
        XYZIlluminant.F8: (97.115, 100.000, 81.135),
        XYZIlluminant.F9: (102.116, 100.000, 67.826),
        XYZIlluminant.F10: (99.001, 100.000, 83.134),
        XYZIlluminant.F11: (103.866, 100.000, 65.627),
        XYZIlluminant.F12: (111.428, 100.000, 40.353),
    },
}


def get_reference(observer: XYZObserver = XYZObserver.TWO_DEG,
                  illuminant: XYZIlluminant = XYZIlluminant.D65) -> Tuple[float, float, float]:
    return XYZ_REFERENCES[observer][illuminant]


def rgb_to_xyz(rgb: Sequence[float]) -> Tuple[float, float, float]:
    """sRGB (gamma encoded, [0, 1]) to CIE XYZ scaled so white Y = 100."""
    linear = []
    for c in rgb[:3]:
        c = float(c)
        if c > 0.04045:
            c = ((c + 0.055) / 1.055) ** 2.4
        else:
            c = c / 12.92
        linear.append(c * 100.0)

    r, g, b = linear
    return (
        r * 0.4124 + g * 0.3576 + b * 0.1805,
        r * 0.2126 + g * 0.7152 + b * 0.0722,
        r * 0.0193 + g * 0.1192 + b * 0.9505,
    )


def xyz_to_cielab(xyz: Sequence[float],
                  reference: Sequence[float] = None) -> Tuple[float, float, float]:
    if reference is None:
        reference = get_reference()

    scaled = []
    for value, white in zip(xyz, reference):
        v = value / white
        if v > 0.008856:
            v = v ** (1.0 / 3.0)
        else:
            v = 7.787 * v + 16.0 / 116.0
        scaled.append(v)

    x, y, z = scaled
    return 116.0 * y - 16.0, 500.0 * (x - y), 200.0 * (y - z)


def rgb_to_yuv(rgb: Sequence[float]) -> Tuple[float, float, float]:
    r, g, b = (float(c) for c in rgb[:3])
    return (
        0.299 * r + 0.587 * g + 0.114 * b,
        -0.14713 * r - 0.28886 * g + 0.436 * b,
        0.615 * r - 0.51499 * g - 0.10001 * b,
    )


def delta_e_cie(lab1: Sequence[float], lab2: Sequence[float]) -> float:
    """CIE76 color difference: Euclidean distance in L*a*b*."""
    return math.sqrt(sum((a - b) ** 2 for a, b in zip(lab1, lab2)))


def delta_e_1994(lab1: Sequence[float], lab2: Sequence[float]) -> float:
    """CIE94 color difference with graphic-arts weights (kL = kC = kH = 1)."""
    c1 = math.hypot(lab1[1], lab1[2])
    c2 = math.hypot(lab2[1], lab2[2])
    delta_l = lab2[0] - lab1[0]
    delta_c = c2 - c1
    delta_e = delta_e_cie(lab1, lab2)

    delta_h_sq = delta_e * delta_e - delta_l * delta_l - delta_c * delta_c
    delta_h = math.sqrt(delta_h_sq) if delta_h_sq > 0 else 0.0

    sc = 1.0 + 0.045 * c1
    sh = 1.0 + 0.015 * c1
    return math.sqrt(delta_l ** 2 + (delta_c / sc) ** 2 + (delta_h / sh) ** 2)


def cielab_distance(color_a: Sequence[float], color_b: Sequence[float]) -> float:
    """CIE94 distance between two float RGB colors under D65/2°."""
    reference = get_reference(XYZObserver.TWO_DEG, XYZIlluminant.D65)
    lab_a = xyz_to_cielab(rgb_to_xyz(color_a), reference)
    lab_b = xyz_to_cielab(rgb_to_xyz(color_b), reference)
    return delta_e_1994(lab_a, lab_b)


def yuv_distance(color_a: Sequence[float], color_b: Sequence[float]) -> float:
    """Chroma-only distance: Euclidean over U and V, luma ignored."""
    yuv_a = rgb_to_yuv(color_a)
    yuv_b = rgb_to_yuv(color_b)
    return math.sqrt(sum((yuv_a[i] - yuv_b[i]) ** 2 for i in (1, 2)))


def weighted_similarity(color_a: Sequence[float], ratio: float,
                        color_b: Sequence[float]) -> float:
    """
    Similarity of color_b to a dominant color_a, scaled by the share of
    the image color_a covers. 1.0 only for an identical color covering
    the whole image.
    """
    distance = color_distance(color_a, color_b) / MAX_COLOR_DISTANCE
    return ratio * (1.0 - distance)
