"""
Data models shared by the pipeline, the controller and the UI.

Display-space values (``CropSelection``) are floats measured on the scaled
preview; source-space values (``CropRect``, ``Dimensions``) are integer
pixels of the full-resolution image.  A width or height of ``0`` means
"not known yet" / "use the source size".
"""

from dataclasses import dataclass, replace

from jpeg_crop_tool.config import OUTPUT_MIME_TYPE, QUALITY_DEFAULT


# =============================================================================
# Geometry
# =============================================================================
@dataclass(frozen=True)
class Dimensions:
    """Pixel size of an image or of a target box."""
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class CropSelection:
    """Rectangle drawn on the preview, in display pixels.

    ``w``/``h`` are negative while the user drags up or to the left.
    """
    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0

    def normalized(self) -> "CropSelection":
        """Same rectangle with a non-negative size and the origin at its top-left."""
        x, y, w, h = self.x, self.y, self.w, self.h
        if w < 0:
            x += w
            w = -w
        if h < 0:
            y += h
            h = -h
        return CropSelection(x, y, w, h)


@dataclass(frozen=True)
class CropRect:
    """Crop rectangle in source-image pixels."""
    x: int = 0
    y: int = 0
    w: int = 0
    h: int = 0

    @property
    def size(self) -> Dimensions:
        return Dimensions(self.w, self.h)


# =============================================================================
# Settings and conversion instructions
# =============================================================================
@dataclass(frozen=True)
class EditorSettings:
    """User-facing target configuration."""
    quality: int = QUALITY_DEFAULT
    width: int = 0
    height: int = 0

    @property
    def size(self) -> Dimensions:
        return Dimensions(self.width, self.height)

    def with_size(self, dims: Dimensions) -> "EditorSettings":
        return replace(self, width=dims.width, height=dims.height)

    def with_quality(self, quality: int) -> "EditorSettings":
        return replace(self, quality=quality)


@dataclass(frozen=True)
class ConvertConfig:
    """Everything one pipeline run needs besides the source bytes."""
    quality: int = QUALITY_DEFAULT
    target_width: int = 0
    target_height: int = 0
    crop: CropSelection | None = None
    display_ratio: float = 0.0

    @classmethod
    def from_settings(
        cls,
        settings: EditorSettings,
        crop: CropSelection | None = None,
        display_ratio: float = 0.0,
    ) -> "ConvertConfig":
        return cls(
            quality=settings.quality,
            target_width=settings.width,
            target_height=settings.height,
            crop=crop,
            display_ratio=display_ratio,
        )


# =============================================================================
# Output
# =============================================================================
@dataclass(frozen=True)
class EncodedImage:
    """Encoded output blob plus what the UI shows about it."""
    data: bytes
    width: int = 0
    height: int = 0
    mime_type: str = OUTPUT_MIME_TYPE

    @property
    def size(self) -> int:
        """Length of the encoded blob in bytes."""
        return len(self.data)

    @property
    def dimensions(self) -> Dimensions:
        return Dimensions(self.width, self.height)
