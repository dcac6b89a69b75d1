"""
Qt-free image I/O: the codec collaborator of the conversion pipeline.

``decode()`` turns raw bytes into an ``ImageHandle`` (Pillow for ordinary
rasters, psd-tools for Photoshop documents).  The handle is mutable: crop,
resize and quality calls change it in place and ``encode()`` produces the
output bytes.  Also provides header-only dimension probing, output path
helpers and byte-count formatting.  Safe to import in worker threads.
"""

import io
import logging
from pathlib import Path

from PIL import Image
from psd_tools import PSDImage

from jpeg_crop_tool.config import OUTPUT_SUFFIX
from jpeg_crop_tool.errors import DecodeError, GeometryError
from jpeg_crop_tool.models import Dimensions

logger = logging.getLogger(__name__)

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None

# Photoshop documents start with this signature
_PSD_SIGNATURE = b"8BPS"

# Errors Pillow raises for unreadable or truncated input
_PIL_DECODE_ERRORS = (OSError, SyntaxError, ValueError)

_ENCODE_FORMATS = {"JPEG": "JPEG", "JPG": "JPEG"}


def _is_psd(data: bytes) -> bool:
    return data[:4] == _PSD_SIGNATURE


# =============================================================================
# Image handle
# =============================================================================
class ImageHandle:
    """Decoded image plus pending encoder options, mutated in place."""

    def __init__(self, image: Image.Image):
        self._image = image
        self._quality: int | None = None

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    @property
    def dimensions(self) -> Dimensions:
        return Dimensions(self._image.width, self._image.height)

    @property
    def quality(self) -> int | None:
        return self._quality

    @property
    def image(self) -> Image.Image:
        """Current pixels (read-only use; mutate through the handle methods)."""
        return self._image

    def crop(self, x: int, y: int, w: int, h: int) -> None:
        """Keep only the pixels in ``[x, x+w) × [y, y+h)``."""
        if w <= 0 or h <= 0:
            raise GeometryError(f"crop size must be positive, got {w}x{h}")
        if x < 0 or y < 0 or x + w > self.width or y + h > self.height:
            raise GeometryError(
                f"crop ({x}, {y}, {w}x{h}) exceeds image bounds {self.width}x{self.height}"
            )
        self._image = self._image.crop((x, y, x + w, y + h))

    def resize(self, w: int, h: int) -> None:
        if w <= 0 or h <= 0:
            raise GeometryError(f"resize target must be positive, got {w}x{h}")
        if (w, h) == self._image.size:
            return
        self._image = self._image.resize((w, h), Image.Resampling.LANCZOS)

    def set_quality(self, quality: int) -> None:
        if not 1 <= quality <= 100:
            raise ValueError(f"quality must be between 1 and 100, got {quality}")
        self._quality = quality

    def encode(self, fmt: str = "JPEG") -> bytes:
        """Encode the current pixels; only JPEG output is supported."""
        pil_format = _ENCODE_FORMATS.get(fmt.upper())
        if pil_format is None:
            raise ValueError(f"unsupported output format: {fmt}")
        options = {}
        if self._quality is not None:
            options["quality"] = self._quality
        buf = io.BytesIO()
        self._image.save(buf, pil_format, **options)
        return buf.getvalue()


# =============================================================================
# Decoding
# =============================================================================
def _open_psd(data: bytes) -> Image.Image:
    try:
        psd = PSDImage.open(io.BytesIO(data))
        composite = psd.composite()
    except Exception as exc:  # psd-tools raises assorted parser errors
        raise DecodeError(f"unreadable PSD document: {exc}") from exc
    if composite is None:
        raise DecodeError("PSD document has no visible pixels")
    return composite


def decode(data: bytes) -> ImageHandle:
    """Fully decode *data* into an RGB ``ImageHandle``. Raises ``DecodeError``."""
    if not data:
        raise DecodeError("no image data")
    if _is_psd(data):
        img = _open_psd(data)
    else:
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except _PIL_DECODE_ERRORS as exc:
            raise DecodeError(f"not a supported image: {exc}") from exc
    return ImageHandle(img.convert("RGB"))


def read_dimensions(data: bytes) -> Dimensions:
    """Get image dimensions from the header, without decoding pixels."""
    if not data:
        raise DecodeError("no image data")
    if _is_psd(data):
        try:
            psd = PSDImage.open(io.BytesIO(data))
        except Exception as exc:  # psd-tools raises assorted parser errors
            raise DecodeError(f"unreadable PSD document: {exc}") from exc
        return Dimensions(psd.width, psd.height)
    try:
        with Image.open(io.BytesIO(data)) as img:
            return Dimensions(*img.size)
    except _PIL_DECODE_ERRORS as exc:
        raise DecodeError(f"not a supported image: {exc}") from exc


def read_source(path: Path) -> bytes:
    """Read a source file into memory."""
    return Path(path).read_bytes()


# =============================================================================
# Output helpers
# =============================================================================
def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1


def output_path_for(source_name: str, output_dir: Path) -> Path:
    """Unique ``<stem>.jpg`` path in *output_dir* named after the source file."""
    stem = Path(source_name).stem or "image"
    return unique_path(Path(output_dir) / f"{stem}{OUTPUT_SUFFIX}")


def write_output(data: bytes, out_path: Path) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(data)
    logger.debug("Wrote %d bytes to %s", len(data), out_path)
    return out_path


def format_bytes(size: int, decimals: int = 2) -> str:
    """Human-readable byte count: 0 → '0 Bytes', 1536 → '1.5 KB'."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    text = f"{value:.{max(0, decimals)}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {units[index]}"
