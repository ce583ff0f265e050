"""
Export modules for packed textures.

Supported formats:
- PNG (.col.png / .gs.png) - What the reconstruction shader samples
"""

from .png_exporter import (
    PNGExporter,
    COLOR_SUFFIX,
    LUMINANCE_SUFFIX,
    load_png,
    to_uint8,
    unique_path,
)

__all__ = [
    "PNGExporter",
    "COLOR_SUFFIX",
    "LUMINANCE_SUFFIX",
    "load_png",
    "to_uint8",
    "unique_path",
]
