"""
Quick mode: convert an image straight to a capped JPEG on disk (Qt-free).

Every image is resized to fit ``THUMBNAIL_SIZE`` on its longer side,
encoded at ``QUICK_QUALITY`` and written into the output folder as
``<input stem>.jpg``.
"""

import logging
from pathlib import Path

from jpeg_crop_tool.config import QUICK_QUALITY, THUMBNAIL_SIZE
from jpeg_crop_tool.dimensions import calculate_thumbnail
from jpeg_crop_tool.image_io import output_path_for, read_dimensions, read_source, write_output
from jpeg_crop_tool.models import ConvertConfig, EncodedImage
from jpeg_crop_tool.pipeline import convert_image

logger = logging.getLogger(__name__)


def quick_config(data: bytes, max_size: int = THUMBNAIL_SIZE, quality: int = QUICK_QUALITY) -> ConvertConfig:
    """Build the thumbnail config for an image already held in memory."""
    target = calculate_thumbnail(read_dimensions(data), max_size)
    return ConvertConfig(quality=quality, target_width=target.width, target_height=target.height)


def quick_convert_bytes(data: bytes, max_size: int = THUMBNAIL_SIZE, quality: int = QUICK_QUALITY) -> EncodedImage:
    return convert_image(data, quick_config(data, max_size, quality))


def quick_save(
    data: bytes,
    source_name: str,
    output_dir: Path,
    max_size: int = THUMBNAIL_SIZE,
    quality: int = QUICK_QUALITY,
) -> Path:
    """Convert *data* and write it into *output_dir* after *source_name*. Returns the written path."""
    encoded = quick_convert_bytes(data, max_size, quality)
    out_path = write_output(encoded.data, output_path_for(source_name, Path(output_dir)))
    logger.info(
        "Quick-converted %s -> %s (%dx%d, %d bytes)",
        source_name, out_path, encoded.width, encoded.height, encoded.size,
    )
    return out_path


def quick_convert(
    path: Path,
    output_dir: Path,
    max_size: int = THUMBNAIL_SIZE,
    quality: int = QUICK_QUALITY,
) -> Path:
    """Quick-convert the file at *path* into *output_dir*."""
    path = Path(path)
    return quick_save(read_source(path), path.name, output_dir, max_size, quality)
