"""Tests for the drawing session state machine."""
import math
import pytest
from geomeasure.drawing_session import (
    EMPTY_PREVIEW,
    DegenerateGeometryError,
    DrawingError,
    DrawingState,
    InsufficientPointsError,
    InvalidStateError,
    measure_points,
    preview_features,
)
from geomeasure.geodesy import EARTH_RADIUS_M
from geomeasure.models import DrawingMode, MeasurementKind, POLYGON, LINE_STRING
from conftest import square_ring

LOT = square_ring(100)[:-1]


def add_all(session, points):
    for p in points:
        session.add_point(p)


# --- lifecycle ---

def test_new_session_is_idle(session):
    assert session.state is DrawingState.IDLE
    assert not session.is_drawing()
    assert session.preview() == EMPTY_PREVIEW


def test_start_enters_drawing(session, previews):
    session.start(DrawingMode.AREA)
    assert session.state is DrawingState.DRAWING
    assert session.points == []
    assert previews.last == EMPTY_PREVIEW


def test_start_accepts_mode_string(session):
    session.start("line")
    assert session.mode is DrawingMode.LINE


def test_start_while_drawing_resets(session):
    session.start(DrawingMode.AREA)
    add_all(session, LOT)
    session.start(DrawingMode.LINE)
    assert session.is_drawing()
    assert session.mode is DrawingMode.LINE
    assert session.get_point_count() == 0


def test_add_point_outside_drawing_raises(session):
    with pytest.raises(InvalidStateError):
        session.add_point((0.0, 0.0))


# --- finish ---

def test_area_with_one_point_is_insufficient(session):
    session.start(DrawingMode.AREA)
    session.add_point(LOT[0])
    with pytest.raises(InsufficientPointsError, match="at least 2 points"):
        session.finish()
    assert session.state is DrawingState.DRAWING
    assert session.get_point_count() == 1


def test_area_with_no_points_is_insufficient(session):
    session.start(DrawingMode.AREA)
    with pytest.raises(InsufficientPointsError):
        session.finish()
    assert session.is_drawing()


def test_insufficient_points_is_a_drawing_error():
    assert issubclass(InsufficientPointsError, DrawingError)
    assert issubclass(DegenerateGeometryError, DrawingError)
    assert issubclass(DrawingError, ValueError)


def test_area_with_two_points_finishes_as_line(session):
    session.start(DrawingMode.AREA)
    add_all(session, LOT[:2])
    geometry, measurement = session.finish()
    assert geometry.type == LINE_STRING
    assert measurement.kind is MeasurementKind.LINE


def test_area_recovers_after_failed_finish(session, geometries):
    session.start(DrawingMode.AREA)
    session.add_point(LOT[0])
    with pytest.raises(InsufficientPointsError):
        session.finish()
    add_all(session, LOT[1:3])
    geometry, measurement = session.finish()

    assert session.state is DrawingState.FINISHED
    assert geometry.type == POLYGON
    assert len(geometry.points) == 4
    assert geometry.points[0] == geometry.points[-1]
    assert measurement.kind is MeasurementKind.AREA
    assert measurement.value_meters == pytest.approx(5000, rel=0.01)
    assert geometries.last == geometry


def test_area_square_measurement(session):
    session.start(DrawingMode.AREA)
    add_all(session, LOT)
    geometry, measurement = session.finish()
    assert geometry.points == tuple(square_ring(100))
    assert measurement.value_meters == pytest.approx(10000, rel=0.01)
    assert measurement.perimeter_meters == pytest.approx(400, rel=0.01)


def test_line_measurement(session):
    session.start(DrawingMode.LINE)
    add_all(session, [(-96.797, 32.7767), (-96.7965, 32.7767)])
    geometry, measurement = session.finish()

    expected = EARTH_RADIUS_M * math.radians(0.0005) * math.cos(math.radians(32.7767))
    assert geometry.type == LINE_STRING
    assert measurement.kind is MeasurementKind.LINE
    assert measurement.value_meters == pytest.approx(expected, rel=1e-4)
    assert measurement.perimeter_meters is None


def test_line_mode_never_closes(session):
    session.start(DrawingMode.LINE)
    add_all(session, LOT)
    geometry, _ = session.finish()
    assert geometry.type == LINE_STRING
    assert len(geometry.points) == 4


def test_finish_clears_points_and_preview(session, previews):
    session.start(DrawingMode.AREA)
    add_all(session, LOT)
    session.finish()
    assert session.points == []
    assert previews.last == EMPTY_PREVIEW
    assert session.get_status_message() == "Measured! Set your price below"


def test_degenerate_area_stays_drawing(session, geometries):
    session.start(DrawingMode.AREA)
    add_all(session, [(1.0, 1.0)] * 3)
    with pytest.raises(DegenerateGeometryError, match="try drawing again"):
        session.finish()
    assert session.state is DrawingState.DRAWING
    assert session.get_point_count() == 3
    assert session.geometry is None
    assert geometries.calls == []


def test_degenerate_line_stays_drawing(session):
    session.start(DrawingMode.LINE)
    add_all(session, [(1.0, 1.0), (1.0, 1.0)])
    with pytest.raises(DegenerateGeometryError):
        session.finish()
    assert session.is_drawing()


def test_collinear_area_is_degenerate():
    with pytest.raises(DegenerateGeometryError):
        measure_points([(0.0, 0.0), (0.001, 0.0), (0.002, 0.0)], DrawingMode.AREA)


def test_finish_when_idle_raises(session):
    with pytest.raises(InvalidStateError):
        session.finish()


# --- undo / cancel / clear ---

def test_undo_pops_last_point(session, previews):
    session.start(DrawingMode.AREA)
    add_all(session, LOT[:3])
    assert previews.last.closed

    assert session.undo() == LOT[2]
    assert session.get_point_count() == 2
    assert not previews.last.closed


def test_undo_empty_is_noop(session):
    session.start(DrawingMode.AREA)
    assert session.undo() is None
    assert session.is_drawing()


def test_cancel_discards_points(session, previews):
    session.start(DrawingMode.AREA)
    add_all(session, LOT)
    session.cancel()
    assert session.state is DrawingState.CANCELLED
    assert session.points == []
    assert session.geometry is None
    assert previews.last == EMPTY_PREVIEW


def test_cancel_when_not_drawing_raises(session):
    with pytest.raises(InvalidStateError):
        session.cancel()


def test_clear_discards_finished_geometry(session, geometries):
    session.start(DrawingMode.AREA)
    add_all(session, LOT)
    session.finish()
    session.clear()
    assert session.state is DrawingState.IDLE
    assert session.geometry is None
    assert session.measurement is None
    assert geometries.last is None


def test_clear_while_drawing(session):
    session.start(DrawingMode.LINE)
    add_all(session, LOT[:2])
    session.clear()
    assert session.state is DrawingState.IDLE
    assert session.points == []


def test_restart_discards_finished_geometry(session, geometries):
    session.start(DrawingMode.AREA)
    add_all(session, LOT)
    session.finish()
    session.start(DrawingMode.AREA)
    assert session.geometry is None
    assert geometries.last is None


# --- preview ---

def test_preview_closes_only_for_area_with_three_points(session, previews):
    session.start(DrawingMode.AREA)
    session.add_point(LOT[0])
    session.add_point(LOT[1])
    assert not previews.last.closed
    session.add_point(LOT[2])
    assert previews.last.closed
    assert previews.last.points == tuple(LOT[:3])


def test_line_preview_never_closed(session, previews):
    session.start(DrawingMode.LINE)
    add_all(session, LOT)
    assert not previews.last.closed
    assert session.preview().points == tuple(LOT)


def test_preview_features_for_area():
    fc = preview_features(LOT[:3], DrawingMode.AREA)
    types = [f["geometry"]["type"] for f in fc["features"]]
    assert fc["type"] == "FeatureCollection"
    assert types == ["Point", "Point", "Point", "LineString", "Polygon"]
    line = fc["features"][3]["geometry"]["coordinates"]
    assert line[0] == line[-1]
    assert len(line) == 4


def test_preview_features_for_line():
    fc = preview_features(LOT[:2], DrawingMode.LINE)
    types = [f["geometry"]["type"] for f in fc["features"]]
    assert types == ["Point", "Point", "LineString"]


def test_preview_features_empty():
    assert preview_features([], DrawingMode.AREA)["features"] == []


# --- geometry output ---

def test_polygon_geojson(session):
    session.start(DrawingMode.AREA)
    add_all(session, LOT)
    geometry, _ = session.finish()
    gj = geometry.to_geojson()
    assert gj["type"] == "Polygon"
    assert len(gj["coordinates"]) == 1
    assert gj["coordinates"][0][0] == gj["coordinates"][0][-1]


def test_line_feature_properties(session):
    session.start(DrawingMode.LINE)
    add_all(session, LOT[:2])
    geometry, _ = session.finish()
    feature = geometry.to_feature({"name": "fence"})
    assert feature["type"] == "Feature"
    assert feature["geometry"]["type"] == "LineString"
    assert feature["properties"] == {"name": "fence"}


# --- status ---

@pytest.mark.parametrize("count, message", [
    (0, "Tap on the map to add points"),
    (1, "1 point - tap more corners"),
    (2, "2 points - tap more or tap Done for a line"),
    (4, "4 points - tap Done to finish"),
])
def test_status_message_while_drawing(session, count, message):
    session.start(DrawingMode.AREA)
    add_all(session, LOT[:count])
    assert session.get_status_message() == message


def test_status_message_idle(session):
    assert session.get_status_message() == "Choose Area or Line to start measuring"
