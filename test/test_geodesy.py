"""Tests for geomeasure/geodesy.py pure functions."""
import math
import pytest
from geomeasure.geodesy import (
    EARTH_RADIUS_M,
    distance_meters, path_length_meters, polygon_area_meters, close_ring,
)
from conftest import degrees_for_meters, square_ring


# --- distance_meters ---

def test_distance_equal_points_is_zero():
    assert distance_meters((-96.797, 32.7767), (-96.797, 32.7767)) == 0.0


def test_distance_is_symmetric():
    a = (-96.797, 32.7767)
    b = (-96.7801, 32.7912)
    assert distance_meters(a, b) == pytest.approx(distance_meters(b, a), rel=1e-12)


def test_distance_one_degree_of_latitude():
    expected = EARTH_RADIUS_M * math.pi / 180
    assert distance_meters((10.0, 0.0), (10.0, 1.0)) == pytest.approx(expected, rel=1e-9)


def test_distance_along_parallel_scales_with_cos_latitude():
    # 0.0005 deg of longitude at Dallas latitude
    expected = EARTH_RADIUS_M * math.radians(0.0005) * math.cos(math.radians(32.7767))
    assert distance_meters((-96.797, 32.7767), (-96.7965, 32.7767)) == pytest.approx(expected, rel=1e-6)


def test_distance_antipodal_is_half_circumference():
    d = distance_meters((0.0, 0.0), (180.0, 0.0))
    assert not math.isnan(d)
    assert d == pytest.approx(math.pi * EARTH_RADIUS_M, rel=1e-9)


def test_distance_pole_to_pole():
    assert distance_meters((0.0, 90.0), (0.0, -90.0)) == pytest.approx(math.pi * EARTH_RADIUS_M, rel=1e-9)


def test_distance_returns_plain_float():
    assert type(distance_meters((0, 0), (1, 1))) is float


# --- path_length_meters ---

def test_path_length_empty_and_single_point():
    assert path_length_meters([]) == 0.0
    assert path_length_meters([(1.0, 2.0)]) == 0.0


def test_path_length_sums_segments():
    pts = [(0.0, 0.0), (0.0, 1.0), (0.0, 3.0)]
    assert path_length_meters(pts) == pytest.approx(distance_meters((0, 0), (0, 3)), rel=1e-9)


def test_path_length_does_not_close():
    d = degrees_for_meters(100)
    open_path = [(0.0, 0.0), (d, 0.0), (d, d)]
    assert path_length_meters(open_path) == pytest.approx(200, rel=1e-3)


def test_path_length_closed_square_is_four_sides():
    assert path_length_meters(square_ring(100)) == pytest.approx(400, rel=0.01)


# --- polygon_area_meters ---

def test_area_square_near_equator():
    assert polygon_area_meters(square_ring(100)) == pytest.approx(10000, rel=0.01)


def test_area_square_at_dallas():
    ring = square_ring(50, -96.797, 32.7767)
    # Longitude span was sized for the equator, so the ground width shrinks by cos(lat)
    expected = 50 * 50 * math.cos(math.radians(32.7767))
    assert polygon_area_meters(ring) == pytest.approx(expected, rel=0.01)


def test_area_independent_of_winding():
    ring = square_ring(100)
    assert polygon_area_meters(ring) == pytest.approx(polygon_area_meters(ring[::-1]), rel=1e-12)


def test_area_open_ring_matches_closed_ring():
    ring = square_ring(100)
    assert polygon_area_meters(ring[:-1]) == pytest.approx(polygon_area_meters(ring), rel=1e-12)


def test_area_collinear_points_is_zero():
    assert polygon_area_meters([(0.0, 0.0), (0.001, 0.0), (0.002, 0.0), (0.0, 0.0)]) == 0.0


def test_area_too_few_points_is_zero():
    assert polygon_area_meters([]) == 0.0
    assert polygon_area_meters([(0.0, 0.0), (1.0, 1.0)]) == 0.0


def test_area_triangle():
    d = degrees_for_meters(100)
    tri = close_ring([(0.0, 0.0), (d, 0.0), (0.0, d)])
    assert polygon_area_meters(tri) == pytest.approx(5000, rel=0.01)


# --- close_ring ---

def test_close_ring_appends_first_point():
    assert close_ring([(0, 0), (1, 0), (1, 1)]) == [(0, 0), (1, 0), (1, 1), (0, 0)]


def test_close_ring_already_closed_unchanged():
    ring = [(0, 0), (1, 0), (1, 1), (0, 0)]
    assert close_ring(ring) == ring


def test_close_ring_empty():
    assert close_ring([]) == []
