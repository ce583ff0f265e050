"""
Packing Errors

Every failure the processor reports derives from PackingError, so callers
(and the CLI) can catch one type and show the message.

Validation errors are raised before any pixel is touched. EncodeFailure is
the only error that can happen after dithering and the color transform have
run, since writing the images is the last step.
"""


class PackingError(Exception):
    """Base class for texture packing failures."""


class NoSourceDefined(PackingError, ValueError):
    """None of the R/G/B source slots holds an image."""

    def __init__(self, message: str = "One or more textures should be defined"):
        super().__init__(message)


class SizeMismatch(PackingError, ValueError):
    """Two present sources have different dimensions."""

    def __init__(self, first: str, first_size, other: str, other_size):
        self.first = first
        self.other = other
        self.first_size = tuple(first_size)
        self.other_size = tuple(other_size)
        super().__init__(
            f"All textures should have same size: '{other}' is "
            f"{self.other_size[0]}x{self.other_size[1]} but '{first}' is "
            f"{self.first_size[0]}x{self.first_size[1]}"
        )


class SourceUnreadable(PackingError):
    """A source image could not be opened or decoded."""


class DestinationUndefined(PackingError):
    """No usable output directory was given."""

    def __init__(self, message: str = "Target path not defined"):
        super().__init__(message)


class EncodeFailure(PackingError):
    """Writing an output image failed."""

    def __init__(self, path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write {path}: {cause}")


class PackingCancelled(PackingError):
    """The cancel hook asked the packer to stop between sources."""
