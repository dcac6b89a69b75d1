import pytest
from PyQt6.QtCore import QPointF, QSize
from PyQt6.QtGui import QColor, QPixmap

from conftest import make_image_bytes
from jpeg_crop_tool.crop_widget import CropPreviewWidget, pixmap_from_bytes
from jpeg_crop_tool.models import CropSelection


def _pixmap(w, h):
    pixmap = QPixmap(w, h)
    pixmap.fill(QColor(200, 30, 30))
    return pixmap


@pytest.fixture
def preview(qtbot):
    widget = CropPreviewWidget()
    qtbot.addWidget(widget)
    widget.set_max_display_size(400, 400)
    return widget


def test_image_is_scaled_to_fit(qtbot, preview):
    with qtbot.waitSignal(preview.display_ratio_changed) as blocker:
        preview.set_image(_pixmap(800, 400))

    assert blocker.args == [0.5]
    assert preview.display_ratio() == 0.5
    assert preview.display_size() == QSize(400, 200)


def test_small_image_is_not_upscaled(preview):
    preview.set_image(_pixmap(100, 50))
    assert preview.display_ratio() == 1.0
    assert preview.display_size() == QSize(100, 50)


def test_new_image_drops_selection(preview):
    preview.set_image(_pixmap(100, 100))
    preview.begin_selection(QPointF(10, 10))
    preview.update_selection(QPointF(50, 50))
    preview.finish_selection()
    assert preview.selection() is not None

    preview.set_image(_pixmap(120, 100))
    assert preview.selection() is None


def test_reverse_drag_is_normalized(qtbot, preview):
    preview.set_image(_pixmap(200, 200))

    with qtbot.waitSignal(preview.selection_changed) as blocker:
        preview.begin_selection(QPointF(100, 80))
        preview.update_selection(QPointF(60, 50))
        preview.finish_selection()

    assert blocker.args == [CropSelection(60, 50, 40, 30)]


def test_tiny_drag_clears_selection(qtbot, preview):
    preview.set_image(_pixmap(200, 200))

    with qtbot.waitSignal(preview.selection_changed) as blocker:
        preview.begin_selection(QPointF(10, 10))
        preview.update_selection(QPointF(13, 12))
        preview.finish_selection()

    assert blocker.args == [None]
    assert preview.selection() is None


def test_drag_is_clamped_to_image(preview):
    preview.set_image(_pixmap(200, 100))
    preview.begin_selection(QPointF(-20, 50))
    preview.update_selection(QPointF(500, 500))
    preview.finish_selection()

    assert preview.selection() == CropSelection(0, 50, 200, 50)


def test_no_selection_without_image(qtbot, preview):
    with qtbot.assertNotEmitted(preview.selection_changed):
        preview.begin_selection(QPointF(1, 1))
        preview.finish_selection()
    assert preview.selection() is None


def test_clear_selection_emits_none(qtbot, preview):
    preview.set_image(_pixmap(200, 200))
    preview.begin_selection(QPointF(0, 0))
    preview.update_selection(QPointF(50, 50))
    preview.finish_selection()

    with qtbot.waitSignal(preview.selection_changed) as blocker:
        preview.clear_selection()
    assert blocker.args == [None]


def test_pixmap_from_bytes(qtbot):
    pixmap = pixmap_from_bytes(make_image_bytes(30, 20))
    assert (pixmap.width(), pixmap.height()) == (30, 20)
