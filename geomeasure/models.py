"""
Value types shared by the measurement engine.
"""

from collections import namedtuple
from enum import Enum


class GeoPoint(namedtuple("GeoPoint", ["lng", "lat"])):
    """A WGS-84 position in decimal degrees, stored as (longitude, latitude)."""

    __slots__ = ()

    def to_list(self):
        return [float(self.lng), float(self.lat)]


class DrawingMode(Enum):
    """What the user asked to draw"""
    AREA = "area"
    LINE = "line"


class MeasurementKind(Enum):
    """What the finished shape actually measures"""
    AREA = "area"
    LINE = "line"


POLYGON = "Polygon"
LINE_STRING = "LineString"


class Geometry(namedtuple("Geometry", ["type", "points"])):
    """
    A finished shape.

    For a Polygon, ``points`` is the closed ring (first point repeated last).
    For a LineString, ``points`` are the tracked points as drawn.
    """

    __slots__ = ()

    @classmethod
    def polygon(cls, ring):
        return cls(POLYGON, tuple(GeoPoint(*p) for p in ring))

    @classmethod
    def line_string(cls, points):
        return cls(LINE_STRING, tuple(GeoPoint(*p) for p in points))

    @property
    def is_polygon(self):
        return self.type == POLYGON

    def to_geojson(self):
        """
        Get the GeoJSON geometry object.

        Returns:
            dict with "type" and "coordinates" ([lng, lat] lists)
        """
        coords = [GeoPoint(*p).to_list() for p in self.points]
        if self.is_polygon:
            return {"type": POLYGON, "coordinates": [coords]}
        return {"type": LINE_STRING, "coordinates": coords}

    def to_feature(self, properties=None):
        """Wrap the geometry in a GeoJSON Feature"""
        return {
            "type": "Feature",
            "geometry": self.to_geojson(),
            "properties": dict(properties or {}),
        }


class RawMeasurement(namedtuple("RawMeasurement", ["kind", "value_meters", "perimeter_meters"])):
    """
    Canonical measurement every displayed unit is derived from.

    ``value_meters`` is square meters for an area and meters for a line.
    ``perimeter_meters`` is the boundary length of an area, or None.
    """

    __slots__ = ()

    def __new__(cls, kind, value_meters, perimeter_meters=None):
        if kind is MeasurementKind.LINE:
            perimeter_meters = None
        return super().__new__(cls, kind, float(value_meters),
                               None if perimeter_meters is None else float(perimeter_meters))

    @classmethod
    def area(cls, square_meters, perimeter_meters=None):
        return cls(MeasurementKind.AREA, square_meters, perimeter_meters)

    @classmethod
    def line(cls, meters):
        return cls(MeasurementKind.LINE, meters)

    @property
    def is_area(self):
        return self.kind is MeasurementKind.AREA


UnitValues = namedtuple("UnitValues", ["sqft", "linft", "sqyd", "acre"], defaults=(None, None, None, None))
UnitValues.__doc__ = "Displayed values for the four unit boxes (None when not meaningful)."

UNITS = UnitValues._fields

LineItem = namedtuple("LineItem", ["type", "area", "unit", "price", "qty"], defaults=("", 0.0, "sqft", 0.0, 1))
LineItem.__doc__ = "One priced row of a quote."
