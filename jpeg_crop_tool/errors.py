"""
Exception hierarchy for a single conversion attempt.

All three are terminal for the attempt that raised them: nothing retries
internally, a later input change simply starts a fresh attempt.
"""


class ConversionError(Exception):
    """Base class for failures while deriving an output image."""


class DecodeError(ConversionError):
    """The input bytes are not a supported raster image."""


class GeometryError(ConversionError):
    """Crop or resize parameters are out of bounds or non-positive."""


class UnsetDimensionError(ConversionError):
    """A resize was requested but neither width nor height is determinable."""
