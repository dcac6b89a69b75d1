"""
Application constants and configuration.

Everything here is a plain module-level constant: quality presets, thumbnail
and quick-mode defaults, crop-selection thresholds and preview limits.  The
editor keeps no state on disk, so there is no config directory.
"""


# =============================================================================
# APP IDENTITY
# =============================================================================
APP_NAME = "jpeg-crop-tool"
WINDOW_TITLE = "JPEG Crop Tool"

# =============================================================================
# JPEG QUALITY
# =============================================================================
# Offered in the quality dropdown, highest first
QUALITY_OPTIONS = (100, 92, 85, 50)
QUALITY_DEFAULT = 50

OUTPUT_MIME_TYPE = "image/jpeg"
OUTPUT_SUFFIX = ".jpg"

# =============================================================================
# RESIZE PRESETS
# =============================================================================
# Longest side for the "Thumbnail" button and quick mode
THUMBNAIL_SIZE = 1024

# Quick mode always encodes at this quality
QUICK_QUALITY = 50

# =============================================================================
# CROP EDITOR
# =============================================================================
# Selections smaller than this on both sides (display pixels) are discarded
MIN_SELECTION_SIZE = 5

# Width/height edits are coalesced within this window (milliseconds)
EDIT_DEBOUNCE_MS = 300

# Preview may use at most this fraction of the screen (0.75 vh / 0.40 vw)
PREVIEW_MAX_HEIGHT_FRACTION = 0.75
PREVIEW_MAX_WIDTH_FRACTION = 0.40

# Selection outline (screen pixels)
SELECTION_PEN_WIDTH = 2

# Supported input extensions for file drops and the command line
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tiff", ".tif", ".webp", ".psd"}
