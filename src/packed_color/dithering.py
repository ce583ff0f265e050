"""
Error-Diffusion Dithering with Numba JIT Compilation

Quantizes a flat pixel buffer to 4-bit precision (17 levels, 0/16 .. 16/16)
and pushes each pixel's rounding error onto neighbors that have not been
visited yet, so the average tone over an area survives the quantization.

Algorithm Overview:
1. Visit pixels in raster order (top-to-bottom, left-to-right)
2. Quantize R, G, B independently: q = clamp01(round(v * 16) / 16)
3. Store q, then add weight * (v - q) to each in-bounds kernel tap

The scan is sequential within one buffer. Kernel taps outside the image are
dropped, never wrapped or clamped.
"""

from enum import Enum
from typing import Dict, Union
import numpy as np
from numba import njit
from scipy import ndimage


QUANTIZATION_LEVELS = 16


class DitherKernel(Enum):
    """Available diffusion kernels."""
    NONE = "none"
    FLOYD_STEINBERG = "floyd_steinberg"
    JARVIS_JUDICE_NINKE = "jarvis_judice_ninke"
    BURKES = "burkes"
    SIERRA_3 = "sierra3"
    SIERRA_2 = "sierra2"
    SIERRA_LITE = "sierra_lite"


def _kernel(rows, denominator: float) -> np.ndarray:
    matrix = np.array(rows, dtype=np.float64) / denominator
    matrix.flags.writeable = False
    return matrix


# Row 0 is the current row; the anchor column is (width - 1) // 2.
KERNELS: Dict[DitherKernel, np.ndarray] = {
    DitherKernel.FLOYD_STEINBERG: _kernel([
        [0, 0, 7],
        [3, 5, 1],
    ], 16.0),
    DitherKernel.JARVIS_JUDICE_NINKE: _kernel([
        [0, 0, 0, 7, 5],
        [3, 5, 7, 5, 3],
        [1, 3, 5, 3, 1],
    ], 48.0),
    DitherKernel.BURKES: _kernel([
        [0, 0, 0, 8, 4],
        [2, 4, 8, 4, 2],
    ], 32.0),
    DitherKernel.SIERRA_3: _kernel([
        [0, 0, 0, 5, 3],
        [2, 4, 5, 4, 2],
        [0, 2, 3, 2, 0],
    ], 32.0),
    DitherKernel.SIERRA_2: _kernel([
        [0, 0, 0, 4, 3],
        [1, 2, 3, 2, 1],
    ], 16.0),
    DitherKernel.SIERRA_LITE: _kernel([
        [0, 0, 2],
        [1, 1, 0],
    ], 4.0),
}


def resolve_kernel(kernel: Union[str, DitherKernel, None]) -> DitherKernel:
    """
    Convert a name (or None) to DitherKernel.

    Raises:
        ValueError: For an unknown kernel name
    """
    if kernel is None:
        return DitherKernel.NONE
    if isinstance(kernel, DitherKernel):
        return kernel
    try:
        return DitherKernel(str(kernel).lower().replace("-", "_"))
    except ValueError:
        valid = ", ".join(k.value for k in DitherKernel)
        raise ValueError(
            f"Unknown dithering kernel: {kernel!r} (expected one of: {valid})"
        ) from None


def get_kernel(kernel: Union[str, DitherKernel]) -> np.ndarray:
    """
    Get the weight matrix of a kernel.

    Returns:
        Read-only float64 matrix; row 0 is the current row
    """
    kernel = resolve_kernel(kernel)
    if kernel == DitherKernel.NONE:
        raise ValueError("The 'none' kernel has no weight matrix")
    return KERNELS[kernel]


@njit(cache=True)
def _quantize_value(v: float) -> float:
    q = np.rint(v * 16.0) / 16.0
    if q < 0.0:
        return 0.0
    if q > 1.0:
        return 1.0
    return q


@njit(cache=True)
def _diffuse(pixels: np.ndarray, width: int, height: int, kernel: np.ndarray):
    """Quantize in place, propagating error through the kernel."""
    core_h = kernel.shape[0]
    core_w = kernel.shape[1]
    anchor = (core_w - 1) // 2

    for y in range(height):
        for x in range(width):
            offset = y * width + x
            r = pixels[offset, 0]
            g = pixels[offset, 1]
            b = pixels[offset, 2]

            pixels[offset, 0] = _quantize_value(r)
            pixels[offset, 1] = _quantize_value(g)
            pixels[offset, 2] = _quantize_value(b)

            r -= pixels[offset, 0]
            g -= pixels[offset, 1]
            b -= pixels[offset, 2]

            for core_y in range(core_h):
                j = y + core_y
                if j >= height:
                    break
                for core_x in range(core_w):
                    weight = kernel[core_y, core_x]
                    if weight == 0.0:
                        continue
                    i = x + core_x - anchor
                    if i < 0 or i >= width:
                        continue
                    target = j * width + i
                    pixels[target, 0] += weight * r
                    pixels[target, 1] += weight * g
                    pixels[target, 2] += weight * b


def quantize(values: np.ndarray) -> np.ndarray:
    """
    Snap values to the 4-bit grid without diffusing error.

    Rounds half to even, then clamps to [0, 1]. Idempotent.

    Args:
        values: Array of any shape

    Returns:
        New float64 array of the same shape
    """
    values = np.asarray(values, dtype=np.float64)
    return np.clip(np.rint(values * QUANTIZATION_LEVELS) / QUANTIZATION_LEVELS, 0.0, 1.0)


def dither(
    buffer: np.ndarray,
    width: int,
    height: int,
    kernel: Union[str, DitherKernel, None] = DitherKernel.FLOYD_STEINBERG
) -> np.ndarray:
    """
    Apply error-diffusion dithering to a flat pixel buffer in place.

    Only R, G and B are touched; an alpha column is left as-is.

    Args:
        buffer: Floating point array of shape (width * height, 3 or 4)
        width: Image width in pixels
        height: Image height in pixels
        kernel: Kernel enum or name; NONE leaves the buffer unchanged

    Returns:
        The same buffer, for chaining
    """
    kernel = resolve_kernel(kernel)

    if not isinstance(buffer, np.ndarray) or buffer.ndim != 2 or buffer.shape[1] < 3:
        raise ValueError("Buffer must be an array of shape (width * height, 3 or 4)")
    if width < 0 or height < 0 or buffer.shape[0] != width * height:
        raise ValueError(
            f"Buffer holds {buffer.shape[0]} pixels, expected {width}x{height}"
        )
    if not np.issubdtype(buffer.dtype, np.floating):
        raise ValueError(f"Buffer must hold floating point samples, got {buffer.dtype}")

    if kernel == DitherKernel.NONE or buffer.shape[0] == 0:
        return buffer

    _diffuse(buffer, width, height, KERNELS[kernel])
    return buffer


def local_tone_error(
    original: np.ndarray,
    dithered: np.ndarray,
    width: int,
    height: int,
    sigma: float = 1.5
) -> float:
    """
    Mean absolute difference between the two buffers after a Gaussian blur.

    A rough stand-in for how the eye averages neighboring pixels: good
    diffusion keeps this well below plain quantization.

    Args:
        original: Buffer before dithering, shape (N, C)
        dithered: Buffer after dithering, same shape
        width: Image width in pixels
        height: Image height in pixels
        sigma: Blur radius in pixels

    Returns:
        Mean absolute blurred difference over the RGB channels
    """
    if original.shape != dithered.shape:
        raise ValueError("Buffers must have the same shape")

    errors = []
    for c in range(min(original.shape[1], 3)):
        a = original[:, c].reshape(height, width).astype(np.float64)
        b = dithered[:, c].reshape(height, width).astype(np.float64)
        diff = ndimage.gaussian_filter(a - b, sigma=sigma, mode="nearest")
        errors.append(np.mean(np.abs(diff)))

    return float(np.mean(errors))
