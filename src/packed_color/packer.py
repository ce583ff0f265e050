"""
Channel Packer

Combines up to three same-sized sources into:
- one color-difference buffer per source (written as <name>.col.png)
- one shared luminance buffer with source k's luminance in channel k
  (written as <names>.gs.png)

Pipeline per invocation:
1. Validate the source set (at least one source, identical sizes)
2. For each source: dither a private copy, then apply the color transform
3. Accumulate luminance into channel R, G or B of the shared buffer
4. Dither the shared luminance buffer

Example Usage:
    packer = ChannelPacker(ColorSpace.GOOD_QUALITY, post_dither="floyd_steinberg")
    result = packer.pack([red_source, None, blue_source])
    result.color_buffers[0]   # (N, 3) color-difference buffer for red_source
    result.luminance          # (N, 3) combined luminance buffer
"""

import logging
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple, Union
import numpy as np

from .color import ColorSpace, resolve_color_space, transform_pixels
from .dithering import DitherKernel, dither, local_tone_error, resolve_kernel
from .errors import NoSourceDefined, PackingCancelled, SizeMismatch
from .ingestion import SourceImage


logger = logging.getLogger(__name__)

MAX_SOURCES = 3
CHANNEL_NAMES = ("R", "G", "B")


class PackResult(NamedTuple):
    """Buffers produced by one packing run."""
    color_buffers: List[Optional[np.ndarray]]   # per channel, (N, 3) or None
    luminance: np.ndarray                       # (N, 3) float64
    width: int
    height: int
    names: List[Optional[str]]                  # per channel source names

    @property
    def luminance_name(self) -> str:
        """Present source names joined with '_'."""
        return "_".join(name for name in self.names if name is not None)

    @property
    def channels(self) -> List[int]:
        """Indices of the channels that had a source."""
        return [i for i, buf in enumerate(self.color_buffers) if buf is not None]


def validate_sources(sources: Sequence[Optional[SourceImage]]) -> Tuple[int, int]:
    """
    Check the source set before any pixel processing.

    Args:
        sources: Up to three optional sources (R, G, B)

    Returns:
        Common (width, height)

    Raises:
        ValueError: More than three sources
        NoSourceDefined: Every slot is empty
        SizeMismatch: A source differs in size from the first present one
    """
    if len(sources) > MAX_SOURCES:
        raise ValueError(f"At most {MAX_SOURCES} sources can be packed, got {len(sources)}")

    reference: Optional[SourceImage] = None
    for source in sources:
        if source is None:
            continue
        if reference is None:
            reference = source
        elif source.size != reference.size:
            raise SizeMismatch(reference.name, reference.size, source.name, source.size)

    if reference is None:
        raise NoSourceDefined()

    return reference.size


class ChannelPacker:
    """
    Packs a source set into color-difference and luminance buffers.

    Attributes:
        color_space: Transform variant for every source
        pre_dither: Kernel applied to each source before the transform
        post_dither: Kernel applied to the combined luminance buffer
    """

    def __init__(
        self,
        color_space: Union[str, ColorSpace] = ColorSpace.GOOD_QUALITY,
        pre_dither: Union[str, DitherKernel, None] = DitherKernel.NONE,
        post_dither: Union[str, DitherKernel, None] = DitherKernel.FLOYD_STEINBERG
    ):
        self.color_space = resolve_color_space(color_space)
        self.pre_dither = resolve_kernel(pre_dither)
        self.post_dither = resolve_kernel(post_dither)

    def pack(
        self,
        sources: Sequence[Optional[SourceImage]],
        cancel: Optional[Callable[[], bool]] = None
    ) -> PackResult:
        """
        Run the packing pipeline.

        Args:
            sources: Up to three optional sources, index 0=R, 1=G, 2=B
            cancel: Optional callable checked before each source; when it
                returns True the run stops with PackingCancelled

        Returns:
            PackResult with the per-source color buffers and the luminance buffer
        """
        width, height = validate_sources(sources)
        slots = list(sources) + [None] * (MAX_SOURCES - len(sources))

        luminance = np.zeros((width * height, 3), dtype=np.float64)
        color_buffers: List[Optional[np.ndarray]] = [None] * MAX_SOURCES
        names: List[Optional[str]] = [None] * MAX_SOURCES

        for channel, source in enumerate(slots):
            if source is None:
                continue
            if cancel is not None and cancel():
                raise PackingCancelled(
                    f"Cancelled before processing {source.name}"
                )

            logger.debug(
                "Processing %s into channel %s (%s, pre-dither %s)",
                source.name, CHANNEL_NAMES[channel],
                self.color_space.value, self.pre_dither.value
            )

            pixels = source.copy_pixels()
            dither(pixels, width, height, self.pre_dither)
            color, source_luminance = transform_pixels(pixels, self.color_space)

            color_buffers[channel] = color
            luminance[:, channel] = source_luminance
            names[channel] = source.name

        if logger.isEnabledFor(logging.DEBUG) and self.post_dither != DitherKernel.NONE:
            undithered = luminance.copy()
            dither(luminance, width, height, self.post_dither)
            logger.debug(
                "Luminance dithered with %s, local tone error %.5f",
                self.post_dither.value,
                local_tone_error(undithered, luminance, width, height)
            )
        else:
            dither(luminance, width, height, self.post_dither)

        return PackResult(
            color_buffers=color_buffers,
            luminance=luminance,
            width=width,
            height=height,
            names=names,
        )


def pack(
    sources: Sequence[Optional[SourceImage]],
    color_space: Union[str, ColorSpace] = ColorSpace.GOOD_QUALITY,
    pre_dither: Union[str, DitherKernel, None] = DitherKernel.NONE,
    post_dither: Union[str, DitherKernel, None] = DitherKernel.FLOYD_STEINBERG,
    cancel: Optional[Callable[[], bool]] = None
) -> PackResult:
    """Convenience wrapper around ChannelPacker.pack."""
    return ChannelPacker(color_space, pre_dither, post_dither).pack(sources, cancel)
