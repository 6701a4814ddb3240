"""
Geomeasure - tap-to-measure engine: gestures, drawing session, geodesy and unit boxes.

MapCanvas (Tk display helper) lives in geomeasure.map_canvas and is imported
by the desktop host directly.
"""

from .models import GeoPoint, DrawingMode, MeasurementKind, Geometry, RawMeasurement, UnitValues, LineItem
from .geodesy import distance_meters, path_length_meters, polygon_area_meters, close_ring
from .gesture import GestureClassifier, GestureKind
from .drawing_session import (
    DrawingSession,
    DrawingState,
    DrawingError,
    InsufficientPointsError,
    DegenerateGeometryError,
    InvalidStateError,
    preview_features,
)
from .unit_sync import UnitSynchronizer, derive_all, apply_edit
from .projection import GeoReference
from .engine import MeasurementEngine

__all__ = [
    'GeoPoint',
    'DrawingMode',
    'MeasurementKind',
    'Geometry',
    'RawMeasurement',
    'UnitValues',
    'LineItem',
    'distance_meters',
    'path_length_meters',
    'polygon_area_meters',
    'close_ring',
    'GestureClassifier',
    'GestureKind',
    'DrawingSession',
    'DrawingState',
    'DrawingError',
    'InsufficientPointsError',
    'DegenerateGeometryError',
    'InvalidStateError',
    'preview_features',
    'UnitSynchronizer',
    'derive_all',
    'apply_edit',
    'GeoReference',
    'MeasurementEngine',
]
