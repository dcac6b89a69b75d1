"""
Conversion pipeline (Qt-free).

One call, one source: decode the bytes, then crop → resize → quality →
encode in that fixed order.  Nothing is kept between calls, so the result
is a pure function of ``(data, config)``.  Safe to run in worker threads.
"""

import logging

from jpeg_crop_tool.coords import map_to_source
from jpeg_crop_tool.errors import GeometryError
from jpeg_crop_tool.image_io import ImageHandle, decode
from jpeg_crop_tool.models import ConvertConfig, EncodedImage

logger = logging.getLogger(__name__)


def _crop(handle: ImageHandle, config: ConvertConfig) -> None:
    if config.crop is None:
        return
    rect = map_to_source(config.crop.normalized(), config.display_ratio, handle.dimensions)
    handle.crop(rect.x, rect.y, rect.w, rect.h)


def _resize(handle: ImageHandle, config: ConvertConfig) -> None:
    if config.target_width < 0 or config.target_height < 0:
        raise GeometryError(
            f"target size must not be negative, got {config.target_width}x{config.target_height}"
        )
    if config.target_width and config.target_height:
        handle.resize(config.target_width, config.target_height)


def convert_image(data: bytes, config: ConvertConfig) -> EncodedImage:
    """
    Apply *config* to the image in *data* and return the JPEG result.

    Raises ``DecodeError`` for unreadable input and ``GeometryError`` for a
    crop outside the source or a negative target size.
    """
    handle = decode(data)
    source = handle.dimensions

    _crop(handle, config)
    _resize(handle, config)
    handle.set_quality(config.quality)
    encoded = handle.encode("JPEG")

    logger.debug(
        "Converted %dx%d -> %dx%d (q=%d, crop=%s): %d bytes",
        source.width, source.height, handle.width, handle.height,
        config.quality, config.crop is not None, len(encoded),
    )
    return EncodedImage(encoded, width=handle.width, height=handle.height)
