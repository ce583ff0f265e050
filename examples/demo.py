#!/usr/bin/env python3
"""
Packed Color Demo Script

This script demonstrates the full packing pipeline by:
1. Creating synthetic test textures (no external images needed)
2. Packing them with both color spaces
3. Comparing every dithering kernel on the luminance texture
4. Writing the .col.png / .gs.png results

Run with: python examples/demo.py
"""

import sys
from pathlib import Path
import numpy as np
import time

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from packed_color import ColorSpace, DitherKernel, SourceImage, TextureProcessor, pack
from packed_color.color import decode_pixels
from packed_color.dithering import KERNELS, dither, local_tone_error, quantize


def create_test_gradient(size: int = 64) -> SourceImage:
    """
    Create a smooth two-axis color gradient.

    Returns:
        SourceImage named "gradient"
    """
    rgba = np.zeros((size, size, 4), dtype=np.float64)
    ramp = np.linspace(0.0, 1.0, size)

    rgba[:, :, 0] = ramp[np.newaxis, :]     # Red left to right
    rgba[:, :, 1] = ramp[:, np.newaxis]     # Green top to bottom
    rgba[:, :, 2] = 0.5
    rgba[:, :, 3] = 1.0

    return SourceImage.from_array(rgba, "gradient")


def create_test_circle(size: int = 64) -> SourceImage:
    """
    Create a soft blue disc on a warm background.

    Returns:
        SourceImage named "circle"
    """
    rgba = np.zeros((size, size, 4), dtype=np.uint8)
    rgba[:, :] = [220, 180, 150, 255]   # Skin tone

    center = size / 2
    radius = size / 2 - 4
    ys, xs = np.mgrid[0:size, 0:size]
    dist = np.sqrt((xs - center) ** 2 + (ys - center) ** 2)
    falloff = np.clip(1.0 - dist / radius, 0.0, 1.0)[:, :, np.newaxis]

    blue = np.array([80, 120, 180, 255], dtype=np.float64)
    mixed = rgba.astype(np.float64) * (1.0 - falloff) + blue * falloff
    return SourceImage.from_array(mixed.astype(np.uint8), "circle")


def create_test_noise(size: int = 64, seed: int = 7) -> SourceImage:
    """
    Create low-contrast value noise.

    Returns:
        SourceImage named "noise"
    """
    rng = np.random.default_rng(seed)
    rgba = np.empty((size, size, 4), dtype=np.float64)
    rgba[:, :, :3] = 0.4 + 0.2 * rng.random((size, size, 3))
    rgba[:, :, 3] = 1.0
    return SourceImage.from_array(rgba, "noise")


def compare_color_spaces(sources):
    """Print reconstruction error after 8-bit storage for both transforms."""
    print("\nColor space reconstruction (8-bit storage, no dithering):")

    for space in ColorSpace:
        result = pack(sources, space, DitherKernel.NONE, DitherKernel.NONE)
        errors = []
        for channel in result.channels:
            stored_color = np.round(np.clip(result.color_buffers[channel], 0, 1) * 255) / 255
            stored_lum = np.round(np.clip(result.luminance[:, channel], 0, 1) * 255) / 255
            rgb = decode_pixels(stored_color, stored_lum, space)
            original = sources[channel].pixels[:, :3]
            errors.append(np.abs(rgb - original).max())

        print(f"  {space.label:22s} max error: {max(errors) * 255:.2f} / 255")


def compare_kernels(source: SourceImage):
    """Print the local tone error of every kernel on one source."""
    print(f"\nDithering kernels on '{source.name}' (local tone error, lower is better):")

    width, height = source.size
    original = source.copy_pixels()

    plain = quantize(original[:, :3])
    print(f"  {'plain quantization':22s} {local_tone_error(original[:, :3], plain, width, height):.5f}")

    for kernel in KERNELS:
        buffer = source.copy_pixels()
        start = time.time()
        dither(buffer, width, height, kernel)
        elapsed = time.time() - start
        error = local_tone_error(original, buffer, width, height)
        print(f"  {kernel.value:22s} {error:.5f}  ({elapsed * 1000:.1f}ms)")


def run_demo():
    """Run the demonstration."""
    print("=" * 60)
    print("Packed Color Texture Processor - Demo")
    print("=" * 60)

    # Create output directory
    output_dir = Path(__file__).parent / "output"
    output_dir.mkdir(exist_ok=True)

    sources = [
        create_test_gradient(64),
        create_test_circle(64),
        create_test_noise(64),
    ]

    total_start = time.time()

    compare_color_spaces(sources)
    compare_kernels(sources[0])

    print("\nExporting...")
    for space in ColorSpace:
        processor = TextureProcessor(
            color_space=space,
            pre_dither=DitherKernel.NONE,
            post_dither=DitherKernel.FLOYD_STEINBERG
        )

        space_dir = output_dir / space.value
        result = processor.process_arrays(sources, space_dir)
        for path in result.written:
            print(f"  Saved: {path}")

    total_time = time.time() - total_start

    print("\n" + "=" * 60)
    print(f"Demo complete! Total time: {total_time:.2f}s")
    print(f"Output files in: {output_dir}")
    print("=" * 60)

    return 0


if __name__ == "__main__":
    run_demo()
