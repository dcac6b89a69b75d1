import pytest

from conftest import make_image_bytes, make_noise_bytes, open_jpeg
from jpeg_crop_tool.errors import DecodeError, GeometryError
from jpeg_crop_tool.models import ConvertConfig, CropSelection
from jpeg_crop_tool.pipeline import convert_image


def _mean_rgb(img):
    pixels = list(img.convert("RGB").getdata())
    n = len(pixels)
    return tuple(sum(p[i] for p in pixels) / n for i in range(3))


def test_plain_conversion_is_jpeg_of_same_size(png_200x100):
    out = convert_image(png_200x100, ConvertConfig(quality=85))

    assert out.mime_type == "image/jpeg"
    assert out.data[:2] == b"\xff\xd8"
    assert (out.width, out.height) == (200, 100)
    img = open_jpeg(out.data)
    assert img.format == "JPEG"
    assert img.size == (200, 100)
    assert out.size == len(out.data)


def test_resize_to_target(png_200x100):
    out = convert_image(png_200x100, ConvertConfig(quality=85, target_width=50, target_height=30))
    assert open_jpeg(out.data).size == (50, 30)


@pytest.mark.parametrize("w, h", [(50, 0), (0, 30), (0, 0)])
def test_resize_skipped_unless_both_sides_set(png_200x100, w, h):
    out = convert_image(png_200x100, ConvertConfig(quality=85, target_width=w, target_height=h))
    assert open_jpeg(out.data).size == (200, 100)


def test_crop_keeps_selected_region(split_png):
    # Right half of a 200x100 image shown at half size
    config = ConvertConfig(quality=100, crop=CropSelection(50, 0, 50, 50), display_ratio=0.5)
    out = convert_image(split_png, config)

    img = open_jpeg(out.data)
    assert img.size == (100, 100)
    r, g, b = _mean_rgb(img)
    assert b > 200 and r < 50


def test_negative_selection_is_normalized(split_png):
    config = ConvertConfig(quality=100, crop=CropSelection(50, 50, -50, -50), display_ratio=0.5)
    img = open_jpeg(convert_image(split_png, config).data)

    assert img.size == (100, 100)
    r, g, b = _mean_rgb(img)
    assert r > 200 and b < 50


def test_crop_happens_before_resize(png_200x100):
    # Crop maps to 80x60 source pixels, then resized to a different box
    config = ConvertConfig(
        quality=85,
        target_width=30,
        target_height=90,
        crop=CropSelection(10, 10, 40, 30),
        display_ratio=0.5,
    )
    out = convert_image(png_200x100, config)
    assert open_jpeg(out.data).size == (30, 90)
    assert (out.width, out.height) == (30, 90)


def test_conversion_is_idempotent():
    data = make_noise_bytes(64, 64)
    config = ConvertConfig(quality=92, target_width=40, target_height=40,
                           crop=CropSelection(4, 4, 50, 50), display_ratio=1.0)
    assert convert_image(data, config).data == convert_image(data, config).data


def test_quality_is_applied():
    data = make_noise_bytes(128, 128)
    low = convert_image(data, ConvertConfig(quality=50))
    high = convert_image(data, ConvertConfig(quality=100))
    assert high.size > low.size


def test_alpha_input_is_flattened():
    data = make_image_bytes(40, 20, color=(10, 20, 30, 128), mode="RGBA")
    img = open_jpeg(convert_image(data, ConvertConfig(quality=85)).data)
    assert img.mode == "RGB"
    assert img.size == (40, 20)


@pytest.mark.parametrize("data", [b"", b"definitely not an image", b"\x89PNG\r\n\x1a\n broken"])
def test_undecodable_input(data):
    with pytest.raises(DecodeError):
        convert_image(data, ConvertConfig(quality=85))


def test_broken_psd_is_decode_error():
    with pytest.raises(DecodeError):
        convert_image(b"8BPS" + b"\x00" * 10, ConvertConfig(quality=85))


def test_crop_past_source_bounds(png_200x100):
    # Maps to x=160, w=80 on a 200px wide source
    config = ConvertConfig(quality=85, crop=CropSelection(80, 0, 40, 40), display_ratio=0.5)
    with pytest.raises(GeometryError):
        convert_image(png_200x100, config)


def test_crop_without_display_ratio(png_200x100):
    config = ConvertConfig(quality=85, crop=CropSelection(0, 0, 40, 40), display_ratio=0.0)
    with pytest.raises(GeometryError):
        convert_image(png_200x100, config)


def test_negative_target_size(png_200x100):
    with pytest.raises(GeometryError):
        convert_image(png_200x100, ConvertConfig(quality=85, target_width=-5, target_height=10))


def test_edge_crop_survives_rounding():
    # Drag from x=1 to the right edge of a 400px preview of a 1000px image
    data = make_image_bytes(1000, 100)
    config = ConvertConfig(quality=85, crop=CropSelection(1, 0, 399, 40), display_ratio=0.4)
    out = convert_image(data, config)
    assert open_jpeg(out.data).size == (997, 100)
