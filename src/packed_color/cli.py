"""
Command-Line Interface for the Packed Color Texture Processor

Usage:
    packcolor --red stone.png -o packed/
    packcolor --red stone.png --green moss.png --color-space ycocg -o packed/
    packcolor --red a.png --blue b.png --pre-dither sierra_lite --post-dither burkes -o out/

"""

import argparse
import sys
from typing import List, Optional
import time

from . import __version__
from .color import ColorSpace
from .config import SETTINGS, configure_logging
from .dithering import KERNELS, DitherKernel
from .errors import PackingError
from .processor import TextureProcessor


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="packcolor",
        description="Packed Color Texture Processor - Split up to three textures "
                    "into color-difference and combined luminance textures",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  packcolor --red stone.png -o packed/
      Writes packed/stone.col.png and packed/stone.gs.png

  packcolor --red stone.png --green moss.png -o packed/
      Writes stone.col.png, moss.col.png and stone_moss.gs.png

  packcolor --red stone.png --pre-dither sierra_lite --post-dither none -o packed/
      Dither the source before packing, leave the luminance undithered

Color Spaces:
  ycocg  - YCoCg (Low quality)
  ycbcr  - YCbCr (Good quality, default)

Dithering Kernels:
  none, floyd_steinberg, jarvis_judice_ninke, burkes,
  sierra3, sierra2, sierra_lite
        """
    )

    # Sources
    parser.add_argument(
        "-r", "--red",
        help="Source texture packed into the R channel of the luminance texture"
    )

    parser.add_argument(
        "-g", "--green",
        help="Source texture packed into the G channel of the luminance texture"
    )

    parser.add_argument(
        "-b", "--blue",
        help="Source texture packed into the B channel of the luminance texture"
    )

    # Output
    parser.add_argument(
        "-o", "--output-dir",
        default=SETTINGS.output_dir,
        help="Directory for the generated textures"
    )

    # Packing settings
    parser.add_argument(
        "-c", "--color-space",
        choices=[space.value for space in ColorSpace],
        default=SETTINGS.color_space,
        help=f"Packing type (default: {SETTINGS.color_space})"
    )

    kernel_names = [kernel.value for kernel in DitherKernel]

    parser.add_argument(
        "--pre-dither",
        choices=kernel_names,
        default=SETTINGS.pre_dither,
        help=f"Dithering applied to each source before packing (default: {SETTINGS.pre_dither})"
    )

    parser.add_argument(
        "--post-dither",
        choices=kernel_names,
        default=SETTINGS.post_dither,
        help=f"Dithering applied to the luminance texture (default: {SETTINGS.post_dither})"
    )

    # Misc
    parser.add_argument(
        "--list-kernels",
        action="store_true",
        help="Print the dithering kernel weights and exit"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output with debug logging"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def print_kernels() -> None:
    """Print every kernel as integer weights over its denominator."""
    for kernel, matrix in KERNELS.items():
        denominator = _denominator(matrix)
        print(f"{kernel.value} (/{denominator}):")
        for row in matrix:
            print("  " + " ".join(f"{round(w * denominator):2d}" for w in row))


def _denominator(matrix) -> int:
    """Smallest catalog denominator that turns every weight into an integer."""
    for candidate in (4, 16, 32, 48):
        scaled = matrix * candidate
        if abs(scaled - scaled.round()).max() < 1e-9:
            return candidate
    return 1


def process_sources(args) -> int:
    """Pack the given sources."""
    source_paths = [args.red, args.green, args.blue]

    if all(path is None for path in source_paths):
        print("Error: One or more textures should be defined", file=sys.stderr)
        return 1

    start_time = time.time()

    try:
        processor = TextureProcessor(
            color_space=args.color_space,
            pre_dither=args.pre_dither,
            post_dither=args.post_dither
        )

        if args.verbose:
            print(f"Packing type: {processor.packer.color_space.label}")

        result = processor.process(source_paths, args.output_dir)

        for path in result.written:
            print(f"Exported: {path}")

        elapsed = time.time() - start_time
        if args.verbose:
            print(f"\nCompleted in {elapsed:.2f}s")

        return 0

    except (PackingError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging("DEBUG" if args.verbose else None)

    if args.list_kernels:
        print_kernels()
        return 0

    return process_sources(args)


if __name__ == "__main__":
    sys.exit(main())
