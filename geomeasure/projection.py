"""
Web Mercator georeferencing for aerial images.

An image exported from a web map covers a lng/lat bounding box with pixels
that are evenly spaced in spherical Mercator meters, so pixel <-> lng/lat is
linear in Mercator space.
"""

import json
import math

import numpy as np

from .models import GeoPoint

MERCATOR_RADIUS_M = 6378137.0
MAX_LATITUDE = 85.05112878


def lnglat_to_mercator(lng, lat):
    """Spherical Web Mercator (EPSG:3857) x/y in meters"""
    lat = np.clip(lat, -MAX_LATITUDE, MAX_LATITUDE)
    x = MERCATOR_RADIUS_M * np.radians(lng)
    y = MERCATOR_RADIUS_M * np.log(np.tan(np.pi / 4 + np.radians(lat) / 2))
    return x, y


def mercator_to_lnglat(x, y):
    """Inverse of lnglat_to_mercator"""
    lng = np.degrees(x / MERCATOR_RADIUS_M)
    lat = np.degrees(2 * np.arctan(np.exp(y / MERCATOR_RADIUS_M)) - np.pi / 2)
    return lng, lat


def parse_bounds(text):
    """
    Parse "WEST,SOUTH,EAST,NORTH".

    Raises:
        ValueError: Not four numbers
    """
    parts = [p.strip() for p in str(text).split(",")]
    if len(parts) != 4:
        raise ValueError("Bounds must be WEST,SOUTH,EAST,NORTH")
    return tuple(float(p) for p in parts)


def parse_point(text):
    """Parse "LNG,LAT" into a GeoPoint"""
    parts = [p.strip() for p in str(text).split(",")]
    if len(parts) != 2:
        raise ValueError("Point must be LNG,LAT")
    return GeoPoint(float(parts[0]), float(parts[1]))


class GeoReference:
    """
    Maps image pixels to lng/lat for an image covering ``bounds``.

    Pixel (0, 0) is the top-left corner of the image (west, north).
    """

    def __init__(self, bounds, width, height):
        """
        Args:
            bounds: (west, south, east, north) in degrees
            width: Image width in pixels
            height: Image height in pixels

        Raises:
            ValueError: Empty or inverted bounds, or non-positive size
        """
        west, south, east, north = (float(b) for b in bounds)
        if not (west < east and south < north):
            raise ValueError(f"Invalid bounds: {bounds}")
        if abs(south) > MAX_LATITUDE or abs(north) > MAX_LATITUDE:
            raise ValueError(f"Bounds outside Web Mercator latitude range: {bounds}")
        if width <= 0 or height <= 0:
            raise ValueError("Image size must be positive")

        self.bounds = (west, south, east, north)
        self.width = int(width)
        self.height = int(height)

        self.x0, self.y1 = lnglat_to_mercator(west, north)
        self.x1, self.y0 = lnglat_to_mercator(east, south)

    @classmethod
    def around(cls, center, meters_per_pixel, width, height):
        """
        Build a georeference centered on a point.

        Args:
            center: (lng, lat)
            meters_per_pixel: Ground resolution at the center
            width: Image width in pixels
            height: Image height in pixels
        """
        cx, cy = lnglat_to_mercator(center[0], center[1])
        # Mercator meters stretch by 1/cos(lat) relative to ground meters
        scale = meters_per_pixel / math.cos(math.radians(center[1]))
        half_w = width * scale / 2
        half_h = height * scale / 2
        west, south = mercator_to_lnglat(cx - half_w, cy - half_h)
        east, north = mercator_to_lnglat(cx + half_w, cy + half_h)
        return cls((float(west), float(south), float(east), float(north)), width, height)

    @classmethod
    def from_metadata(cls, path, width=None, height=None):
        """
        Load a georeference from a JSON sidecar.

        The file needs a "bounds" list; "width"/"height" are used when the
        image size is not given.
        """
        with open(path) as f:
            metadata = json.load(f)
        if "bounds" not in metadata:
            raise ValueError(f"{path}: missing 'bounds'")
        return cls(metadata["bounds"],
                   width if width is not None else metadata["width"],
                   height if height is not None else metadata["height"])

    def pixel_to_lnglat(self, px, py):
        """Convert image pixel coordinates to a GeoPoint"""
        x = self.x0 + (px / self.width) * (self.x1 - self.x0)
        y = self.y1 - (py / self.height) * (self.y1 - self.y0)
        lng, lat = mercator_to_lnglat(x, y)
        return GeoPoint(float(lng), float(lat))

    def lnglat_to_pixel(self, lng, lat):
        """Convert lng/lat to image pixel coordinates"""
        x, y = lnglat_to_mercator(lng, lat)
        px = (x - self.x0) / (self.x1 - self.x0) * self.width
        py = (self.y1 - y) / (self.y1 - self.y0) * self.height
        return float(px), float(py)

    def meters_per_pixel(self):
        """Ground resolution at the image center"""
        _, lat = self.pixel_to_lnglat(self.width / 2, self.height / 2)
        return float((self.x1 - self.x0) / self.width * math.cos(math.radians(lat)))

    def to_metadata(self):
        return {"bounds": list(self.bounds), "width": self.width, "height": self.height}
