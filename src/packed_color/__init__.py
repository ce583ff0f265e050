"""
Packed Color Texture Processor
==============================

An offline pipeline that splits textures into a color-difference texture and
a shared luminance texture that a shader can recombine cheaply.

Up to three source textures are packed per run. Each source produces its own
color-difference texture (.col.png), and their luminance values share one
grayscale texture (.gs.png), one source per R/G/B channel.

Key Features:
- Two packing transforms: YCoCg (low quality) and YCbCr (good quality)
- Six error-diffusion kernels with Numba JIT compilation
- Separate dithering before the transform and on the luminance texture
- Size validation across the source set

Example Usage:
    from packed_color import TextureProcessor

    processor = TextureProcessor(color_space="ycbcr", post_dither="floyd_steinberg")
    processor.process(["stone.png", "moss.png", None], "packed/")
"""

__version__ = "1.0.0"
__author__ = "Packed Color Team"

from .color import ColorSpace, encode_pixel, transform_pixels, decode_pixels
from .dithering import DitherKernel, KERNELS, dither, quantize
from .ingestion import SourceImage, load_source
from .packer import ChannelPacker, PackResult, pack
from .processor import TextureProcessor, ProcessResult
from .errors import (
    PackingError,
    NoSourceDefined,
    SizeMismatch,
    SourceUnreadable,
    DestinationUndefined,
    EncodeFailure,
    PackingCancelled,
)

__all__ = [
    "ColorSpace",
    "encode_pixel",
    "transform_pixels",
    "decode_pixels",
    "DitherKernel",
    "KERNELS",
    "dither",
    "quantize",
    "SourceImage",
    "load_source",
    "ChannelPacker",
    "PackResult",
    "pack",
    "TextureProcessor",
    "ProcessResult",
    "PackingError",
    "NoSourceDefined",
    "SizeMismatch",
    "SourceUnreadable",
    "DestinationUndefined",
    "EncodeFailure",
    "PackingCancelled",
]
