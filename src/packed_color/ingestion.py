"""
Source Image Ingestion Module

This module handles:
- Loading source textures with Pillow and normalizing them to [0, 1] floats
- Flattening to the row-major (width * height, 4) buffer the packer works on
- Wrapping in-memory arrays as named sources

Readability is checked here, before the packer sees any pixels.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union
import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import SourceUnreadable


# Sample range per high bit depth grayscale mode; None means already [0, 1].
# 16-bit PNGs open as "I" on older Pillow releases, so "I" uses the 16-bit range.
HIGH_DEPTH_RANGES = {
    "I;16": 65535.0,
    "I;16L": 65535.0,
    "I;16B": 65535.0,
    "I": 65535.0,
    "F": None,
}


@dataclass
class SourceImage:
    """
    One source texture as a flat RGBA float buffer.

    Attributes:
        name: Base name used for output files
        pixels: float64 array of shape (width * height, 4), row-major
        width: Width in pixels
        height: Height in pixels
    """

    name: str
    pixels: np.ndarray
    width: int
    height: int

    def __post_init__(self):
        if self.pixels.ndim != 2 or self.pixels.shape[1] not in (3, 4):
            raise ValueError("Source pixels must have shape (N, 3) or (N, 4)")
        if self.pixels.shape[0] != self.width * self.height:
            raise ValueError(
                f"Source '{self.name}' holds {self.pixels.shape[0]} pixels, "
                f"expected {self.width}x{self.height}"
            )

    @classmethod
    def from_array(cls, array: np.ndarray, name: str = "source") -> "SourceImage":
        """
        Wrap an image array.

        Args:
            array: Array of shape (H, W, 3) or (H, W, 4). Integer data is
                normalized by the maximum of its dtype (255 for uint8,
                65535 for uint16), float data is used as-is.
            name: Source name

        Returns:
            New SourceImage owning a float64 copy of the data
        """
        array = np.asarray(array)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ValueError("Image array must have shape (H, W, 3) or (H, W, 4)")

        height, width, channels = array.shape
        if np.issubdtype(array.dtype, np.integer):
            pixels = array.astype(np.float64) / float(np.iinfo(array.dtype).max)
        else:
            pixels = array.astype(np.float64)

        return cls(
            name=name,
            pixels=pixels.reshape(width * height, channels),
            width=width,
            height=height,
        )

    @property
    def size(self) -> Tuple[int, int]:
        """Get image size as (width, height)."""
        return (self.width, self.height)

    def copy_pixels(self) -> np.ndarray:
        """Get a private, writable copy of the pixel buffer."""
        return np.array(self.pixels, dtype=np.float64, copy=True)

    def to_array(self) -> np.ndarray:
        """Reshape the buffer back to (H, W, C)."""
        return self.pixels.reshape(self.height, self.width, self.pixels.shape[1])


def load_source(
    image_path: Union[str, Path],
    name: Optional[str] = None
) -> SourceImage:
    """
    Load a source texture from disk.

    Args:
        image_path: Path to any image Pillow can decode (PNG recommended)
        name: Source name; defaults to the file name without extension

    Returns:
        SourceImage with RGBA samples in [0, 1]

    Raises:
        SourceUnreadable: If the file is missing or cannot be decoded
    """
    image_path = Path(image_path)
    if not image_path.is_file():
        raise SourceUnreadable(f"Source texture not found: {image_path}")

    try:
        with Image.open(image_path) as img:
            if img.mode in HIGH_DEPTH_RANGES:
                rgba = _high_depth_to_rgba(img)
            else:
                # Ensure RGBA format
                if img.mode != "RGBA":
                    img = img.convert("RGBA")
                rgba = np.array(img, dtype=np.uint8)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise SourceUnreadable(
            f"Source texture {image_path.name} should be readable: {exc}"
        ) from exc

    return SourceImage.from_array(rgba, name or source_name(image_path))


def _high_depth_to_rgba(img: Image.Image) -> np.ndarray:
    """
    Normalize a 16-bit, 32-bit integer or float grayscale image.

    Pillow's convert("RGBA") clips these modes at 255 instead of scaling,
    so the samples are divided by the mode's range here.

    Returns:
        float64 array of shape (H, W, 4), gray replicated to RGB, alpha 1
    """
    scale = HIGH_DEPTH_RANGES[img.mode]
    gray = np.array(img).astype(np.float64)
    if scale is not None:
        gray = gray / scale

    rgba = np.empty(gray.shape + (4,), dtype=np.float64)
    rgba[:, :, :3] = gray[:, :, np.newaxis]
    rgba[:, :, 3] = 1.0
    return rgba


def source_name(image_path: Union[str, Path]) -> str:
    """File name without its last extension."""
    return Path(image_path).stem

