import pytest
from PyQt6.QtCore import QMimeData, Qt, QUrl
from PyQt6.QtGui import QColor, QImage
from PyQt6.QtWidgets import QApplication, QLineEdit

from conftest import make_image_bytes
from jpeg_crop_tool.image_input import DropArea, image_paste_listener, image_payloads


def _image(w=12, h=8):
    image = QImage(w, h, QImage.Format.Format_RGB32)
    image.fill(QColor(0, 128, 255))
    return image


def test_no_mime_data():
    assert image_payloads(None) == []
    assert image_payloads(QMimeData()) == []


def test_raw_image_becomes_png(qtbot):
    mime = QMimeData()
    mime.setImageData(_image())

    [(data, name)] = image_payloads(mime)
    assert name == "pasted.png"
    assert data[:8] == b"\x89PNG\r\n\x1a\n"


def test_local_image_files_are_read(tmp_path):
    a = tmp_path / "a.png"
    a.write_bytes(make_image_bytes(4, 4))
    b = tmp_path / "b.JPG"
    b.write_bytes(make_image_bytes(4, 4, fmt="JPEG"))
    notes = tmp_path / "notes.txt"
    notes.write_text("x")

    mime = QMimeData()
    mime.setUrls([QUrl.fromLocalFile(str(p)) for p in (a, notes, b, tmp_path / "gone.png")])

    payloads = image_payloads(mime)
    assert [name for _, name in payloads] == ["a.png", "b.JPG"]
    assert payloads[0][0] == a.read_bytes()


def test_remote_urls_are_ignored():
    mime = QMimeData()
    mime.setUrls([QUrl("https://example.com/c.png")])
    assert image_payloads(mime) == []


def test_drop_area_label_is_optional(qtbot):
    bare = DropArea()
    labelled = DropArea("Drop here")
    qtbot.addWidget(bare)
    qtbot.addWidget(labelled)
    assert bare.layout().count() == 0
    assert labelled.layout().count() == 1


def test_paste_listener_is_scoped(qtbot):
    clipboard = QApplication.clipboard()
    clipboard.setImage(_image())
    if not image_payloads(clipboard.mimeData()):
        pytest.skip("clipboard cannot hold images on this platform")

    edit = QLineEdit()
    qtbot.addWidget(edit)
    received = []

    with image_paste_listener(received.extend, target=edit):
        qtbot.keyClick(edit, Qt.Key.Key_V, Qt.KeyboardModifier.ControlModifier)
    assert len(received) == 1
    assert received[0][1] == "pasted.png"

    qtbot.keyClick(edit, Qt.Key.Key_V, Qt.KeyboardModifier.ControlModifier)
    assert len(received) == 1
