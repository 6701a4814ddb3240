"""
DrawingSession - Owns the in-progress point list and turns it into a finished shape.
"""

import logging
import math
from collections import namedtuple
from enum import Enum

from .geodesy import close_ring, path_length_meters, polygon_area_meters
from .models import DrawingMode, GeoPoint, Geometry, RawMeasurement

MIN_POINTS = 2
MIN_POLYGON_POINTS = 3


class DrawingError(ValueError):
    """Base class for a finish that produced no measurement"""


class InsufficientPointsError(DrawingError):
    """Fewer than two points were placed"""


class DegenerateGeometryError(DrawingError):
    """The shape has zero area or length"""


class InvalidStateError(RuntimeError):
    """Operation not valid in the session's current state"""


class DrawingState(Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    FINISHED = "finished"
    CANCELLED = "cancelled"


PreviewData = namedtuple("PreviewData", ["points", "closed"])
PreviewData.__doc__ = "Live drawing feedback: tracked points and whether to close/fill them."

EMPTY_PREVIEW = PreviewData((), False)


def preview_data(points, mode):
    """Build the preview payload for a point list"""
    closed = mode is DrawingMode.AREA and len(points) >= MIN_POLYGON_POINTS
    return PreviewData(tuple(points), closed)


def preview_features(points, mode):
    """
    Build a GeoJSON FeatureCollection for a live preview layer.

    One Point feature per tracked point, a connecting LineString once there
    are two points (closed for an area with three or more), and a Polygon fill
    for an area with three or more points.

    Args:
        points: Tracked (lng, lat) points
        mode: DrawingMode

    Returns:
        dict: GeoJSON FeatureCollection
    """
    coords = [GeoPoint(*p).to_list() for p in points]
    features = [_feature({"type": "Point", "coordinates": c}) for c in coords]

    closed = preview_data(points, mode).closed
    if len(coords) >= MIN_POINTS:
        line = coords + [coords[0]] if closed else coords
        features.append(_feature({"type": "LineString", "coordinates": line}))
    if closed:
        features.append(_feature({"type": "Polygon", "coordinates": [coords + [coords[0]]]}))

    return {"type": "FeatureCollection", "features": features}


def _feature(geometry):
    return {"type": "Feature", "geometry": geometry, "properties": {}}


def measure_points(points, mode):
    """
    Build the finished geometry and its measurement.

    An area drawn with three or more points becomes a closed Polygon;
    anything else becomes a LineString.

    Raises:
        InsufficientPointsError: Fewer than two points
        DegenerateGeometryError: Area or length is zero (or not finite)
    """
    count = len(points)
    if count < MIN_POINTS:
        raise InsufficientPointsError("Tap at least 2 points on the map first")

    if mode is DrawingMode.AREA and count >= MIN_POLYGON_POINTS:
        ring = close_ring(points)
        area = polygon_area_meters(ring)
        if not _is_positive(area):
            raise DegenerateGeometryError("Area calculation failed - try drawing again")
        perimeter = path_length_meters(ring)
        return Geometry.polygon(ring), RawMeasurement.area(area, perimeter)

    length = path_length_meters(points)
    if not _is_positive(length):
        raise DegenerateGeometryError("Length calculation failed - try drawing again")
    return Geometry.line_string(points), RawMeasurement.line(length)


def _is_positive(value):
    return math.isfinite(value) and value > 0


class DrawingSession:
    """
    State machine for one drawing: IDLE -> DRAWING -> FINISHED/CANCELLED.

    Callbacks:
        on_preview(PreviewData): fired after every change to the live points
        on_geometry(Geometry or None): fired with the finished shape, or None
            when the stored shape is discarded
    """

    def __init__(self, on_preview=None, on_geometry=None):
        self.on_preview = on_preview
        self.on_geometry = on_geometry

        self.state = DrawingState.IDLE
        self.mode = DrawingMode.AREA
        self.points = []
        self.geometry = None
        self.measurement = None

    def is_drawing(self):
        """Check if points are currently being collected"""
        return self.state is DrawingState.DRAWING

    def get_point_count(self):
        return len(self.points)

    def start(self, mode):
        """
        Begin a new drawing, discarding any previous one.

        Args:
            mode: DrawingMode (or its string value, "area" / "line")
        """
        self.mode = DrawingMode(mode)
        self.points = []
        self.state = DrawingState.DRAWING
        self._discard_result()
        self._emit_preview(EMPTY_PREVIEW)
        logging.info(f"Drawing started ({self.mode.value})")

    def add_point(self, point):
        """Append a tracked point"""
        self._require_drawing("add_point")
        self.points.append(GeoPoint(*point))
        logging.debug(f"Point added: {tuple(self.points[-1])} - total: {len(self.points)}")
        self._emit_preview(preview_data(self.points, self.mode))

    def undo(self):
        """
        Remove the last tracked point.

        Returns:
            GeoPoint removed, or None if there was nothing to remove
        """
        if not self.is_drawing() or not self.points:
            return None
        point = self.points.pop()
        self._emit_preview(preview_data(self.points, self.mode))
        return point

    def finish(self):
        """
        Close out the drawing.

        The session only moves to FINISHED on success; any failure leaves it
        in DRAWING with its points intact.

        Returns:
            (Geometry, RawMeasurement)

        Raises:
            InvalidStateError: Not drawing
            InsufficientPointsError: Fewer than two points
            DegenerateGeometryError: Zero area or length
        """
        self._require_drawing("finish")

        try:
            geometry, measurement = measure_points(self.points, self.mode)
        except DrawingError as e:
            logging.warning(f"Finish failed with {len(self.points)} points: {e}")
            raise

        self.geometry = geometry
        self.measurement = measurement
        self.points = []
        self.state = DrawingState.FINISHED
        self._emit_preview(EMPTY_PREVIEW)
        if self.on_geometry:
            self.on_geometry(geometry)

        logging.info(f"Drawing finished: {geometry.type}, {measurement.value_meters:.2f} "
                     f"{'sq m' if measurement.is_area else 'm'}")
        return geometry, measurement

    def cancel(self):
        """Abandon the drawing without storing anything"""
        self._require_drawing("cancel")
        self.points = []
        self.state = DrawingState.CANCELLED
        self._emit_preview(EMPTY_PREVIEW)
        logging.info("Drawing cancelled")

    def clear(self):
        """Discard the drawing and any finished shape"""
        if self.is_drawing():
            self.cancel()
        self.points = []
        self._discard_result()
        self._emit_preview(EMPTY_PREVIEW)
        self.state = DrawingState.IDLE

    def preview(self):
        """Current preview payload"""
        if not self.is_drawing():
            return EMPTY_PREVIEW
        return preview_data(self.points, self.mode)

    def get_status_message(self):
        """
        Get the prompt shown while drawing.

        Returns:
            str: Human-readable status message
        """
        if self.state is DrawingState.FINISHED:
            return "Measured! Set your price below"
        if not self.is_drawing():
            return "Choose Area or Line to start measuring"

        n = len(self.points)
        if n == 0:
            return "Tap on the map to add points"
        elif n == 1:
            return "1 point - tap more corners"
        elif n == 2:
            return "2 points - tap more or tap Done for a line"
        return f"{n} points - tap Done to finish"

    def _require_drawing(self, operation):
        if not self.is_drawing():
            raise InvalidStateError(f"Cannot {operation} while {self.state.value}")

    def _discard_result(self):
        had_geometry = self.geometry is not None
        self.geometry = None
        self.measurement = None
        if had_geometry and self.on_geometry:
            self.on_geometry(None)

    def _emit_preview(self, data):
        if self.on_preview:
            self.on_preview(data)
