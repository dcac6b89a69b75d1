"""
Ratio-preserving width/height arithmetic.

The side that is not requested is always rounded *up*, so enlarging never
truncates to a box smaller than intended.
"""

from math import ceil

from jpeg_crop_tool.config import THUMBNAIL_SIZE
from jpeg_crop_tool.errors import GeometryError, UnsetDimensionError
from jpeg_crop_tool.models import Dimensions


def resize_dimension(base: Dimensions, *, width: int | None = None, height: int | None = None) -> Dimensions:
    """
    Scale *base* so that one side matches the request.

    ``height`` wins when both are given.  ``None`` and ``0`` both count as
    "not requested".  Raises ``UnsetDimensionError`` when nothing usable is
    requested or the anchoring side of *base* is unknown, and
    ``GeometryError`` for negative requests.
    """
    if height:
        if height < 0:
            raise GeometryError(f"height must be positive, got {height}")
        if base.height <= 0:
            raise UnsetDimensionError("cannot keep ratio: base height is unknown")
        return Dimensions(width=ceil(height / base.height * base.width), height=height)

    if width:
        if width < 0:
            raise GeometryError(f"width must be positive, got {width}")
        if base.width <= 0:
            raise UnsetDimensionError("cannot keep ratio: base width is unknown")
        return Dimensions(width=width, height=ceil(width / base.width * base.height))

    raise UnsetDimensionError("resize needs a width or a height")


def calculate_thumbnail(dimensions: Dimensions, max_size: int = THUMBNAIL_SIZE) -> Dimensions:
    """Cap *dimensions* to *max_size*: height first, then the resulting width."""
    if dimensions.height > max_size:
        dimensions = resize_dimension(dimensions, height=max_size)

    if dimensions.width > max_size:
        dimensions = resize_dimension(dimensions, width=max_size)

    return dimensions


def is_thumbnail(dimensions: Dimensions, size: int = THUMBNAIL_SIZE) -> bool:
    return max(dimensions.width, dimensions.height) == size
