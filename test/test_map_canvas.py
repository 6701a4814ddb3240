"""Tests for MapCanvas view math (no Tk window needed)."""
import pytest

pytest.importorskip("tkinter")
from geomeasure.map_canvas import MAX_ZOOM, MapCanvas  # noqa: E402


@pytest.fixture
def view(georef):
    view = MapCanvas(None, 800, 600)
    view.set_georeference(georef)
    return view


def test_identity_view(view):
    assert view.canvas_to_image_coords(120, 80) == pytest.approx((120, 80))
    assert view.get_zoom_percentage() == 100


def test_zoom_keeps_anchor_fixed(view):
    before = view.canvas_to_image_coords(200, 150)
    view.zoom_in(200, 150)
    assert view.canvas_to_image_coords(200, 150) == pytest.approx(before)
    assert view.zoom_level == pytest.approx(1.2)


def test_zoom_is_clamped(view):
    for _ in range(50):
        view.zoom_in()
    assert view.zoom_level == MAX_ZOOM


def test_drag_moves_map(view):
    view.start_pan(10, 10)
    assert view.update_pan(40, 30)
    view.end_pan()
    assert not view.update_pan(50, 50)
    assert view.canvas_to_image_coords(40, 20) == pytest.approx((10, 0))


def test_unproject_round_trip(view, georef):
    view.zoom_in(300, 200)
    point = view.unproject(250, 180)
    assert point == pytest.approx(georef.pixel_to_lnglat(*view.canvas_to_image_coords(250, 180)))
    assert view.project(point) == pytest.approx((250, 180), abs=1e-6)


def test_project_all_empty(view):
    assert view.project_all([]).shape == (0, 2)


def test_unproject_without_map():
    with pytest.raises(ValueError, match="georeference"):
        MapCanvas(None, 800, 600).unproject(10, 10)
