"""
Packed Color Transform Module

Handles:
- RGB to color-difference encoding for the packed color texture
- Luminance extraction for the companion grayscale texture
- Decoding the stored channels back to RGB

Color Space Background:
- LOW_QUALITY is YCoCg: integer-friendly weights, exactly reversible
- GOOD_QUALITY is YCbCr chroma with BT.709 luminance weights
- Both chroma channels carry a +0.5 bias so they fit an unsigned texture
- The third stored channel is a shader shortcut, not an independent sample

Nothing here clamps. Out-of-range values are clamped by the ditherer or the
PNG encoder downstream.
"""

from enum import Enum
from typing import Tuple, Union
import numpy as np
from numba import njit, prange


class ColorSpace(Enum):
    """Available packing transforms."""
    LOW_QUALITY = "ycocg"     # YCoCg
    GOOD_QUALITY = "ycbcr"    # YCbCr chroma, BT.709 luma

    @property
    def label(self) -> str:
        """Human readable name."""
        return _LABELS[self]


_LABELS = {
    ColorSpace.LOW_QUALITY: "YCoCg (Low quality)",
    ColorSpace.GOOD_QUALITY: "YCbCr (Good quality)",
}

_CODES = {
    ColorSpace.LOW_QUALITY: 0,
    ColorSpace.GOOD_QUALITY: 1,
}

CHROMA_BIAS = 0.5

# Rows: luminance, first chroma channel, second chroma channel (bias removed)
FORWARD_MATRICES = {
    ColorSpace.LOW_QUALITY: np.array([
        [0.25, 0.5, 0.25],
        [0.5, 0.0, -0.5],
        [-0.25, 0.5, -0.25],
    ], dtype=np.float64),
    ColorSpace.GOOD_QUALITY: np.array([
        [0.2126, 0.7152, 0.0722],
        [-0.168736, -0.331264, 0.5],
        [0.5, -0.418688, -0.081312],
    ], dtype=np.float64),
}

INVERSE_MATRICES = {
    space: np.linalg.inv(matrix) for space, matrix in FORWARD_MATRICES.items()
}

for _matrix in list(FORWARD_MATRICES.values()) + list(INVERSE_MATRICES.values()):
    _matrix.flags.writeable = False


def resolve_color_space(color_space: Union[str, ColorSpace]) -> ColorSpace:
    """
    Convert a name or enum member to ColorSpace.

    Raises:
        ValueError: For an unknown name
    """
    if isinstance(color_space, ColorSpace):
        return color_space
    try:
        return ColorSpace(str(color_space).lower())
    except ValueError:
        valid = ", ".join(space.value for space in ColorSpace)
        raise ValueError(
            f"Unknown color space: {color_space!r} (expected one of: {valid})"
        ) from None


@njit(cache=True)
def _encode_ycocg(r: float, g: float, b: float) -> Tuple[float, float, float, float]:
    y = 0.25 * r + 0.5 * g + 0.25 * b
    co = 0.5 * r - 0.5 * b + 0.5
    cg = -0.25 * r + 0.5 * g - 0.25 * b + 0.5
    return y, co, cg, 1.0 - co


@njit(cache=True)
def _encode_ycbcr(r: float, g: float, b: float) -> Tuple[float, float, float, float]:
    y = 0.2126 * r + 0.7152 * g + 0.0722 * b
    cb = -0.168736 * r - 0.331264 * g + 0.5 * b + 0.5
    cr = 0.5 * r - 0.418688 * g - 0.081312 * b + 0.5
    # Not canonical luma: saves two ALU instructions when the shader samples
    # this channel on D3D9-class backends. Keep the constants as they are.
    alt = -0.2989548 * r + 0.412898048 * g - 0.113943232 * b + 0.5
    return y, cb, cr, alt


@njit(cache=True, parallel=True)
def _transform(pixels: np.ndarray, mode: int) -> Tuple[np.ndarray, np.ndarray]:
    n = pixels.shape[0]
    color = np.empty((n, 3), dtype=np.float64)
    luminance = np.empty(n, dtype=np.float64)

    for i in prange(n):
        r = pixels[i, 0]
        g = pixels[i, 1]
        b = pixels[i, 2]
        if mode == 0:
            y, c0, c1, c2 = _encode_ycocg(r, g, b)
        else:
            y, c0, c1, c2 = _encode_ycbcr(r, g, b)
        luminance[i] = y
        color[i, 0] = c0
        color[i, 1] = c1
        color[i, 2] = c2

    return color, luminance


def encode_pixel(
    r: float,
    g: float,
    b: float,
    color_space: Union[str, ColorSpace] = ColorSpace.GOOD_QUALITY
) -> Tuple[float, Tuple[float, float, float]]:
    """
    Encode a single RGB sample.

    Args:
        r, g, b: Components, nominally in [0, 1]
        color_space: Transform variant

    Returns:
        (luminance, (c0, c1, c2)) where c0/c1 are the biased chroma pair
        and c2 is the derived third channel
    """
    color_space = resolve_color_space(color_space)
    if color_space == ColorSpace.LOW_QUALITY:
        y, c0, c1, c2 = _encode_ycocg(float(r), float(g), float(b))
    else:
        y, c0, c1, c2 = _encode_ycbcr(float(r), float(g), float(b))
    return y, (c0, c1, c2)


def transform_pixels(
    pixels: np.ndarray,
    color_space: Union[str, ColorSpace] = ColorSpace.GOOD_QUALITY
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Encode a flat pixel buffer.

    Args:
        pixels: Array of shape (N, 3) or (N, 4); alpha is ignored
        color_space: Transform variant

    Returns:
        Tuple of (color, luminance):
        - color: float64 array of shape (N, 3)
        - luminance: float64 array of shape (N,)
    """
    color_space = resolve_color_space(color_space)
    if pixels.ndim != 2 or pixels.shape[1] < 3:
        raise ValueError("Pixel buffer must have shape (N, 3) or (N, 4)")

    rgb = np.ascontiguousarray(pixels[:, :3], dtype=np.float64)
    return _transform(rgb, _CODES[color_space])


def decode_pixels(
    color: np.ndarray,
    luminance: np.ndarray,
    color_space: Union[str, ColorSpace] = ColorSpace.GOOD_QUALITY
) -> np.ndarray:
    """
    Reconstruct RGB from a luminance value and the stored chroma pair.

    Only the first two color channels are used; the third is derived
    from them (LOW_QUALITY) or redundant (GOOD_QUALITY).

    Args:
        color: Array of shape (N, 3) as produced by transform_pixels
        luminance: Array of shape (N,)
        color_space: Variant the buffers were encoded with

    Returns:
        float64 array of shape (N, 3), not clamped
    """
    color_space = resolve_color_space(color_space)
    stacked = np.column_stack([
        luminance,
        color[:, 0] - CHROMA_BIAS,
        color[:, 1] - CHROMA_BIAS,
    ]).astype(np.float64)
    return stacked @ INVERSE_MATRICES[color_space].T
