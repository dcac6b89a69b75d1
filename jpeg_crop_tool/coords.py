"""
Display-space to source-space crop mapping.

The preview is scaled uniformly, so a single display ratio
(``displayed_width / natural_width``) relates the two spaces.
"""

from math import floor

from jpeg_crop_tool.config import MIN_SELECTION_SIZE
from jpeg_crop_tool.errors import GeometryError
from jpeg_crop_tool.models import CropRect, CropSelection, Dimensions


def _round_half_up(value: float) -> int:
    # round() would send .5 to the even neighbour
    return int(floor(value + 0.5))


def normalize_selection(selection: CropSelection | None) -> CropSelection | None:
    """Return *selection* with a positive size, or None if it is too small to be intentional."""
    if selection is None:
        return None
    norm = selection.normalized()
    if norm.w < MIN_SELECTION_SIZE and norm.h < MIN_SELECTION_SIZE:
        return None
    return norm


def map_to_source(
    selection: CropSelection,
    display_ratio: float,
    bounds: Dimensions | None = None,
) -> CropRect:
    """
    Convert a normalized display-space selection to source pixels.

    Each coordinate is scaled by ``1 / display_ratio`` and rounded to the
    nearest integer on its own.  Raises ``GeometryError`` while the
    preview has not been measured (``display_ratio <= 0``).

    With *bounds* (the source size), rounding drift of up to one pixel past
    the right or bottom edge is trimmed off the width/height.  Larger
    overflows are left for the codec to reject.
    """
    if display_ratio <= 0:
        raise GeometryError("display ratio is not measured yet")
    inverse = 1 / display_ratio
    x = _round_half_up(selection.x * inverse)
    y = _round_half_up(selection.y * inverse)
    w = _round_half_up(selection.w * inverse)
    h = _round_half_up(selection.h * inverse)
    if bounds is not None:
        w = _trim_drift(x, w, bounds.width)
        h = _trim_drift(y, h, bounds.height)
    return CropRect(x=x, y=y, w=w, h=h)


def _trim_drift(start: int, length: int, limit: int) -> int:
    # x and w each round by at most half a pixel
    overflow = start + length - limit
    if 0 < overflow <= 1:
        return length - overflow
    return length
