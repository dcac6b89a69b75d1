import pytest

from jpeg_crop_tool.coords import map_to_source, normalize_selection
from jpeg_crop_tool.errors import GeometryError
from jpeg_crop_tool.models import CropRect, CropSelection, Dimensions


def test_normalize_flips_negative_drag():
    sel = CropSelection(x=100, y=80, w=-40, h=-30)
    assert normalize_selection(sel) == CropSelection(x=60, y=50, w=40, h=30)


def test_normalize_keeps_positive_drag():
    sel = CropSelection(x=10, y=20, w=30, h=40)
    assert normalize_selection(sel) == sel


def test_tiny_selection_is_discarded():
    assert normalize_selection(CropSelection(x=10, y=10, w=4, h=4)) is None
    assert normalize_selection(CropSelection(x=10, y=10, w=-4, h=-3)) is None
    assert normalize_selection(None) is None


def test_thin_selection_is_kept():
    # Only discarded when both sides are below the threshold
    assert normalize_selection(CropSelection(x=0, y=0, w=3, h=50)) == CropSelection(x=0, y=0, w=3, h=50)


@pytest.mark.parametrize("x, y, w, h", [
    (0, 0, 100, 50),
    (10, 20, 30, 40),
    (12.3, 7.1, 33.3, 21.2),
])
def test_half_ratio_doubles_every_coordinate(x, y, w, h):
    rect = map_to_source(CropSelection(x, y, w, h), 0.5)
    assert rect.w == round(w * 2)
    assert rect.h == round(h * 2)
    assert rect.x == round(x * 2)
    assert rect.y == round(y * 2)


def test_halves_round_up():
    # 1.25 * 2 = 2.5 and 3.75 * 2 = 7.5
    rect = map_to_source(CropSelection(1.25, 3.75, 10, 10), 0.5)
    assert rect == CropRect(3, 8, 20, 20)


def test_identity_ratio():
    assert map_to_source(CropSelection(5, 6, 70, 80), 1.0) == CropRect(5, 6, 70, 80)


@pytest.mark.parametrize("ratio", [0, 0.0, -1.0])
def test_unmeasured_ratio_is_rejected(ratio):
    with pytest.raises(GeometryError):
        map_to_source(CropSelection(0, 0, 10, 10), ratio)


def test_edge_drift_is_trimmed_to_source():
    # 1 / 0.4 = 2.5: x rounds 2.5 -> 3 and w rounds 997.5 -> 998, one past 1000
    sel = CropSelection(1, 0, 399, 40)
    assert map_to_source(sel, 0.4) == CropRect(3, 0, 998, 100)
    assert map_to_source(sel, 0.4, Dimensions(1000, 100)) == CropRect(3, 0, 997, 100)


def test_real_overflow_is_not_trimmed():
    rect = map_to_source(CropSelection(80, 0, 40, 40), 0.5, Dimensions(200, 100))
    assert rect == CropRect(160, 0, 80, 80)
