"""
Getting images into the app: drag-and-drop and clipboard paste.

``image_payloads()`` turns any ``QMimeData`` (drop or clipboard) into
``(bytes, name)`` pairs.  ``DropArea`` is a framed drop target, and
``image_paste_listener()`` is a scoped paste subscription: the event filter
is installed on entry and always removed on exit.
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from PyQt6.QtWidgets import QApplication, QFrame, QLabel, QVBoxLayout
from PyQt6.QtCore import QBuffer, QByteArray, QEvent, QIODevice, QMimeData, QObject, Qt, pyqtSignal
from PyQt6.QtGui import QDragEnterEvent, QDropEvent, QImage, QKeySequence

from jpeg_crop_tool.config import IMAGE_EXTENSIONS

logger = logging.getLogger(__name__)

PASTED_IMAGE_NAME = "pasted.png"


def _qimage_to_png(image: QImage) -> bytes:
    data = QByteArray()
    buf = QBuffer(data)
    buf.open(QIODevice.OpenModeFlag.WriteOnly)
    image.save(buf, "PNG")
    buf.close()
    return bytes(data)


def image_payloads(mime: QMimeData | None) -> list[tuple[bytes, str]]:
    """Extract ``(bytes, name)`` pairs for every image file or raw image in *mime*."""
    if mime is None:
        return []

    payloads: list[tuple[bytes, str]] = []
    if mime.hasUrls():
        for url in mime.urls():
            if not url.isLocalFile():
                continue
            path = Path(url.toLocalFile())
            if path.suffix.lower() not in IMAGE_EXTENSIONS or not path.is_file():
                continue
            try:
                payloads.append((path.read_bytes(), path.name))
            except OSError as exc:
                logger.warning("Could not read dropped file %s: %s", path, exc)
    if not payloads and mime.hasImage():
        image = QImage(mime.imageData())
        if not image.isNull():
            payloads.append((_qimage_to_png(image), PASTED_IMAGE_NAME))
    return payloads


# =============================================================================
# Drop target
# =============================================================================

class DropArea(QFrame):
    """Dashed frame that accepts image files or image data."""

    images_dropped = pyqtSignal(list)  # list[tuple[bytes, str]]

    def __init__(self, text: str = "", parent=None):
        super().__init__(parent)
        self.setAcceptDrops(True)
        self.setObjectName("dropArea")
        self.setStyleSheet("#dropArea { border: 2px dashed #555; border-radius: 4px; }")

        layout = QVBoxLayout(self)
        if text:
            label = QLabel(text)
            label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            label.setStyleSheet("color: #aaa; font-size: 16pt;")
            label.setWordWrap(True)
            layout.addWidget(label)

    def dragEnterEvent(self, event: QDragEnterEvent):
        mime = event.mimeData()
        if mime is not None and (mime.hasUrls() or mime.hasImage()):
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event: QDropEvent):
        payloads = image_payloads(event.mimeData())
        if not payloads:
            event.ignore()
            return
        event.acceptProposedAction()
        self.images_dropped.emit(payloads)


# =============================================================================
# Clipboard paste
# =============================================================================

class _PasteFilter(QObject):
    """Swallows the Paste shortcut when the clipboard holds an image."""

    def __init__(self, callback, parent=None):
        super().__init__(parent)
        self._callback = callback

    def eventFilter(self, obj, event):
        if event.type() == QEvent.Type.KeyPress and event.matches(QKeySequence.StandardKey.Paste):
            payloads = image_payloads(QApplication.clipboard().mimeData())
            if payloads:
                self._callback(payloads)
                return True
        return False


@contextmanager
def image_paste_listener(callback, target: QObject | None = None):
    """Call *callback(payloads)* whenever an image is pasted, for the duration of the block.

    Listens on the whole application unless *target* is given.
    """
    target = target if target is not None else QApplication.instance()
    paste_filter = _PasteFilter(callback)
    target.installEventFilter(paste_filter)
    try:
        yield paste_filter
    finally:
        target.removeEventFilter(paste_filter)
