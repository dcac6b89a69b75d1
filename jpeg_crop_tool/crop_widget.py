"""
Scaled preview with a rubber-band crop selection, plus Qt image helpers.

This module contains everything that touches both Qt **and** image display:
``pil_to_qpixmap``, ``pixmap_from_bytes`` and the ``CropPreviewWidget``.
The widget reports selections in *display* pixels (relative to the top-left
of the drawn image) and the display ratio ``displayed / natural`` once the
image has been laid out; mapping to source pixels is the controller's job.
"""

from PIL import Image
from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QPointF, QRectF, QSize, pyqtSignal
from PyQt6.QtGui import QPainter, QPixmap, QColor, QPen, QImage, QMouseEvent, QPaintEvent

from jpeg_crop_tool.config import SELECTION_PEN_WIDTH
from jpeg_crop_tool.coords import normalize_selection
from jpeg_crop_tool.image_io import decode
from jpeg_crop_tool.models import CropSelection


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    img_rgb = pil_img.convert("RGBA")
    data = img_rgb.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgb.width, img_rgb.height, QImage.Format.Format_RGBA8888)
    return QPixmap.fromImage(qimg.copy())


def pixmap_from_bytes(data: bytes) -> QPixmap:
    """Load a QPixmap from encoded bytes, falling back to Pillow/psd-tools for formats Qt lacks."""
    pixmap = QPixmap()
    if pixmap.loadFromData(data):
        return pixmap
    return pil_to_qpixmap(decode(data).image)


# =============================================================================
# Crop preview widget: scaled image with a drag-to-select overlay
# =============================================================================

class CropPreviewWidget(QWidget):
    """Shows an image scaled to fit and lets the user drag a crop rectangle over it."""

    selection_changed = pyqtSignal(object)   # CropSelection | None, emitted on release
    display_ratio_changed = pyqtSignal(float)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Fixed)
        self.setCursor(Qt.CursorShape.CrossCursor)

        self._pixmap: QPixmap | None = None
        self._max_size = QSize(800, 600)

        # Display mapping
        self._display_w = 0
        self._display_h = 0
        self._ratio = 0.0

        # Selection state (display pixels, relative to the image's top-left)
        self._selection: CropSelection | None = None
        self._dragging = False

    # --- Image ---

    def set_max_display_size(self, width: int, height: int):
        """Largest box the preview may occupy; the image is never upscaled."""
        self._max_size = QSize(max(1, width), max(1, height))
        self._update_display_mapping()

    def set_image(self, pixmap: QPixmap):
        """Show a new image; any previous selection is dropped."""
        self._pixmap = pixmap
        self._selection = None
        self._dragging = False
        self._ratio = 0.0
        self._update_display_mapping()

    def clear(self):
        self._pixmap = None
        self._selection = None
        self._dragging = False
        self._display_w = self._display_h = 0
        self._ratio = 0.0
        self.setFixedSize(0, 0)
        self.update()

    def has_image(self) -> bool:
        return self._pixmap is not None and not self._pixmap.isNull()

    def display_ratio(self) -> float:
        return self._ratio

    def display_size(self) -> QSize:
        return QSize(self._display_w, self._display_h)

    def selection(self) -> CropSelection | None:
        return self._selection

    # --- Coordinate mapping ---

    def _update_display_mapping(self):
        """Fit the image into the max box and publish the new display ratio."""
        if not self.has_image():
            return
        nat_w, nat_h = self._pixmap.width(), self._pixmap.height()
        scale = min(1.0, self._max_size.width() / nat_w, self._max_size.height() / nat_h)
        self._display_w = max(1, round(nat_w * scale))
        self._display_h = max(1, round(nat_h * scale))
        self.setFixedSize(self._display_w, self._display_h)
        self.update()

        ratio = self._display_w / nat_w
        if ratio != self._ratio:
            self._ratio = ratio
            self.display_ratio_changed.emit(ratio)

    def _clamp(self, pos: QPointF) -> QPointF:
        return QPointF(
            max(0.0, min(pos.x(), float(self._display_w))),
            max(0.0, min(pos.y(), float(self._display_h))),
        )

    # --- Selection ---

    def begin_selection(self, pos: QPointF):
        if not self.has_image():
            return
        pos = self._clamp(pos)
        self._dragging = True
        self._selection = CropSelection(pos.x(), pos.y(), 0.0, 0.0)
        self.update()

    def update_selection(self, pos: QPointF):
        if not self._dragging or self._selection is None:
            return
        pos = self._clamp(pos)
        x, y = self._selection.x, self._selection.y
        self._selection = CropSelection(x, y, pos.x() - x, pos.y() - y)
        self.update()

    def finish_selection(self):
        """Normalize the dragged rectangle and publish it (None if too small)."""
        if not self._dragging:
            return
        self._dragging = False
        self._selection = normalize_selection(self._selection)
        self.update()
        self.selection_changed.emit(self._selection)

    def clear_selection(self):
        self._selection = None
        self._dragging = False
        self.update()
        self.selection_changed.emit(None)

    # --- Painting ---

    def sizeHint(self) -> QSize:
        return QSize(self._display_w, self._display_h)

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)

        if not self.has_image():
            painter.end()
            return

        painter.drawPixmap(QRectF(0, 0, self._display_w, self._display_h).toRect(), self._pixmap)

        if self._selection is not None:
            sel = self._selection.normalized()
            pen = QPen(QColor(0, 0, 0), SELECTION_PEN_WIDTH, Qt.PenStyle.DashLine)
            painter.setPen(pen)
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.drawRect(QRectF(sel.x, sel.y, sel.w, sel.h))

        painter.end()

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton:
            return
        self.begin_selection(event.position())

    def mouseMoveEvent(self, event: QMouseEvent):
        self.update_selection(event.position())

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton:
            self.update_selection(event.position())
            self.finish_selection()
