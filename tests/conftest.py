"""Pytest configuration.

Qt tests run on the offscreen platform so the suite works without a display.
Test images are generated in memory with Pillow.
"""

import io
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PIL import Image


def make_image_bytes(width: int, height: int, fmt: str = "PNG", color=(200, 120, 40), mode: str = "RGB") -> bytes:
    """Encode a solid-colour image of the given size."""
    img = Image.new(mode, (width, height), color)
    buf = io.BytesIO()
    img.save(buf, fmt)
    return buf.getvalue()


def make_split_bytes(width: int, height: int) -> bytes:
    """PNG whose left half is red and right half is blue."""
    img = Image.new("RGB", (width, height), (255, 0, 0))
    img.paste((0, 0, 255), (width // 2, 0, width, height))
    buf = io.BytesIO()
    img.save(buf, "PNG")
    return buf.getvalue()


def make_noise_bytes(width: int, height: int) -> bytes:
    """PNG full of noise, so JPEG quality visibly changes the encoded size."""
    img = Image.effect_noise((width, height), 64).convert("RGB")
    buf = io.BytesIO()
    img.save(buf, "PNG")
    return buf.getvalue()


def open_jpeg(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


@pytest.fixture
def png_200x100() -> bytes:
    return make_image_bytes(200, 100)


@pytest.fixture
def split_png() -> bytes:
    return make_split_bytes(200, 100)
