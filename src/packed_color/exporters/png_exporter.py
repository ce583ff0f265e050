"""
PNG Exporter for Packed Buffers

Writes the float buffers produced by the packer as 8-bit RGB PNG files.

Naming convention expected by the reconstruction shader:
- <source name>.col.png   color-difference texture, one per source
- <name0>_<name1>_<name2>.gs.png   luminance texture, one per run

Existing files are never overwritten: a numeric postfix is added to the
base name ("stone 1.col.png") until the path is free.
"""

import logging
from pathlib import Path
from typing import Union
import numpy as np
from PIL import Image

from ..errors import EncodeFailure


logger = logging.getLogger(__name__)

COLOR_SUFFIX = ".col.png"
LUMINANCE_SUFFIX = ".gs.png"


def to_uint8(buffer: np.ndarray) -> np.ndarray:
    """Clamp to [0, 1] and scale to 8-bit with round-half-up."""
    clamped = np.clip(buffer, 0.0, 1.0)
    return (clamped * 255.0 + 0.5).astype(np.uint8)


def unique_path(
    directory: Union[str, Path],
    base_name: str,
    suffix: str
) -> Path:
    """
    Find a free file name in a directory.

    Args:
        directory: Target directory
        base_name: Name without suffix
        suffix: Full suffix, e.g. ".col.png"

    Returns:
        directory/base_name+suffix, or directory/"base_name N"+suffix for the
        smallest N >= 1 that does not exist yet
    """
    directory = Path(directory)
    candidate = directory / f"{base_name}{suffix}"
    index = 1
    while candidate.exists():
        candidate = directory / f"{base_name} {index}{suffix}"
        index += 1
    return candidate


class PNGExporter:
    """
    Encodes flat RGB buffers to PNG.

    A file that fails halfway is removed before EncodeFailure is raised.
    """

    def __init__(self, compress_level: int = 6):
        """
        Initialize the exporter.

        Args:
            compress_level: zlib level passed to Pillow (0-9)
        """
        self.compress_level = compress_level

    def export(
        self,
        buffer: np.ndarray,
        width: int,
        height: int,
        output_path: Union[str, Path]
    ) -> Path:
        """
        Write a buffer to a PNG file.

        Args:
            buffer: Array of shape (width * height, 3 or 4); only RGB is written
            width: Image width
            height: Image height
            output_path: Destination file

        Returns:
            The written path

        Raises:
            EncodeFailure: On any error while encoding or writing
        """
        output_path = Path(output_path)
        existed = output_path.exists()

        try:
            rgb = to_uint8(buffer[:, :3]).reshape(height, width, 3)
            Image.fromarray(rgb).save(
                output_path, format="PNG", compress_level=self.compress_level
            )
        except Exception as exc:
            if not existed and output_path.exists():
                output_path.unlink()
            raise EncodeFailure(output_path, exc) from exc

        logger.info("Wrote %s (%dx%d)", output_path, width, height)
        return output_path


def load_png(file_path: Union[str, Path]) -> np.ndarray:
    """
    Load a written texture back as a flat float buffer.

    Args:
        file_path: Path to a .col.png or .gs.png file

    Returns:
        float64 array of shape (width * height, 3) in [0, 1]
    """
    with Image.open(file_path) as img:
        rgb = np.array(img.convert("RGB"), dtype=np.float64) / 255.0
    return rgb.reshape(-1, 3)
