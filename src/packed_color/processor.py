"""
Texture Processor

The file-level interface for the packing pipeline. It orchestrates:
1. Loading up to three source textures (R, G, B slots)
2. Validating the sources and the destination before any pixel work
3. Packing (dithering + color transform + luminance accumulation)
4. Writing <name>.col.png per source and <names>.gs.png

Example Usage:
    processor = TextureProcessor(color_space="ycbcr", post_dither="floyd_steinberg")
    result = processor.process(["stone.png", "moss.png", None], "textures/packed")
    result.luminance_path   # textures/packed/stone_moss.gs.png
"""

import logging
from pathlib import Path
from typing import Callable, List, NamedTuple, Optional, Sequence, Union

from .color import ColorSpace
from .dithering import DitherKernel
from .errors import DestinationUndefined
from .exporters import COLOR_SUFFIX, LUMINANCE_SUFFIX, PNGExporter, unique_path
from .ingestion import SourceImage, load_source
from .packer import ChannelPacker, PackResult, validate_sources


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ProcessResult(NamedTuple):
    """Files written by one processing run."""
    color_paths: List[Optional[Path]]   # per channel, None for empty slots
    luminance_path: Path
    pack: PackResult

    @property
    def written(self) -> List[Path]:
        """Every written file, color textures first."""
        return [p for p in self.color_paths if p is not None] + [self.luminance_path]


def resolve_destination(output_dir: Optional[PathLike]) -> Path:
    """
    Resolve and create the output directory.

    Raises:
        DestinationUndefined: If no directory is given or the path is a file
    """
    if output_dir is None or str(output_dir).strip() == "":
        raise DestinationUndefined()

    output_dir = Path(output_dir)
    if output_dir.exists() and not output_dir.is_dir():
        raise DestinationUndefined(f"Target path is not a directory: {output_dir}")

    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


class TextureProcessor:
    """
    High-level interface for producing packed color textures.

    Attributes:
        packer: The configured ChannelPacker
        exporter: PNG writer for the results
    """

    def __init__(
        self,
        color_space: Union[str, ColorSpace] = ColorSpace.GOOD_QUALITY,
        pre_dither: Union[str, DitherKernel, None] = DitherKernel.NONE,
        post_dither: Union[str, DitherKernel, None] = DitherKernel.FLOYD_STEINBERG,
        exporter: Optional[PNGExporter] = None
    ):
        """
        Initialize the processor.

        Args:
            color_space: Packing transform ("ycocg" or "ycbcr")
            pre_dither: Kernel applied to each source before the transform
            post_dither: Kernel applied to the combined luminance texture
            exporter: Optional pre-configured PNG exporter
        """
        self.packer = ChannelPacker(color_space, pre_dither, post_dither)
        self.exporter = exporter or PNGExporter()

    def process(
        self,
        source_paths: Sequence[Optional[PathLike]],
        output_dir: Optional[PathLike],
        cancel: Optional[Callable[[], bool]] = None
    ) -> ProcessResult:
        """
        Load, pack and write a set of source files.

        Args:
            source_paths: Up to three optional paths, index 0=R, 1=G, 2=B
            output_dir: Directory receiving the PNG files
            cancel: Optional hook checked between sources

        Returns:
            ProcessResult with the written paths
        """
        if len(source_paths) > 3:
            raise ValueError(f"At most 3 sources can be packed, got {len(source_paths)}")

        sources = [
            load_source(path) if path is not None else None
            for path in source_paths
        ]
        return self.process_arrays(sources, output_dir, cancel)

    def process_arrays(
        self,
        sources: Sequence[Optional[SourceImage]],
        output_dir: Optional[PathLike],
        cancel: Optional[Callable[[], bool]] = None
    ) -> ProcessResult:
        """
        Pack and write in-memory sources.

        Args:
            sources: Up to three optional SourceImage objects
            output_dir: Directory receiving the PNG files
            cancel: Optional hook checked between sources

        Returns:
            ProcessResult with the written paths
        """
        validate_sources(sources)
        output_dir = resolve_destination(output_dir)

        result = self.packer.pack(sources, cancel)
        return self.export(result, output_dir)

    def export(self, result: PackResult, output_dir: PathLike) -> ProcessResult:
        """
        Write the buffers of a PackResult.

        Args:
            result: Output of ChannelPacker.pack
            output_dir: Existing target directory

        Returns:
            ProcessResult with the written paths
        """
        output_dir = Path(output_dir)
        color_paths: List[Optional[Path]] = [None] * len(result.color_buffers)

        for channel in result.channels:
            path = unique_path(output_dir, result.names[channel], COLOR_SUFFIX)
            color_paths[channel] = self.exporter.export(
                result.color_buffers[channel], result.width, result.height, path
            )

        luminance_path = unique_path(output_dir, result.luminance_name, LUMINANCE_SUFFIX)
        self.exporter.export(result.luminance, result.width, result.height, luminance_path)

        logger.debug("Packed %d source(s) into %s", len(result.channels), output_dir)
        return ProcessResult(
            color_paths=color_paths,
            luminance_path=luminance_path,
            pack=result,
        )
