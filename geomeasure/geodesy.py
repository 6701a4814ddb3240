"""
Distance, path length and polygon area from longitude/latitude points.

All functions are total over their numeric input: they return plain floats and
never raise for degenerate shapes. Rejecting zero results is up to the caller.
"""

import numpy as np

# Mean Earth radius (IUGG), meters
EARTH_RADIUS_M = 6371008.8


def _as_lnglat_array(points):
    """Convert a sequence of (lng, lat) pairs to an (N, 2) float array"""
    arr = np.asarray(points, dtype=float)
    if arr.size == 0:
        return arr.reshape(0, 2)
    return arr.reshape(-1, 2)


def _haversine(lng1, lat1, lng2, lat2):
    """Vectorized great-circle distance in meters (inputs in degrees)"""
    phi1 = np.radians(lat1)
    phi2 = np.radians(lat2)
    d_phi = np.radians(lat2 - lat1)
    d_lambda = np.radians(lng2 - lng1)

    h = np.sin(d_phi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2) ** 2
    # Rounding can push h a hair outside [0, 1] for antipodal points
    h = np.clip(h, 0.0, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


def distance_meters(a, b):
    """
    Great-circle distance between two points.

    Args:
        a: (lng, lat) in degrees
        b: (lng, lat) in degrees

    Returns:
        float: Distance in meters
    """
    return float(_haversine(a[0], a[1], b[0], b[1]))


def path_length_meters(points):
    """
    Sum of the segment lengths along an open path.

    No return segment is added, so pass a closed ring to get a perimeter.

    Args:
        points: Sequence of (lng, lat) pairs

    Returns:
        float: Length in meters, 0.0 for fewer than 2 points
    """
    pts = _as_lnglat_array(points)
    if len(pts) < 2:
        return 0.0
    segments = _haversine(pts[:-1, 0], pts[:-1, 1], pts[1:, 0], pts[1:, 1])
    return float(np.sum(segments))


def polygon_area_meters(ring):
    """
    Planar area of a small geographic polygon.

    Each vertex is projected with its own latitude as the cosine scale factor
    (x = R*lng*cos(lat), y = R*lat), then the shoelace formula is applied.
    Good to well under a percent for lots spanning a few kilometers; error
    grows with the latitude span of the polygon.

    Args:
        ring: Closed ring of (lng, lat) pairs (first point repeated last).
              The shoelace sum wraps around, so an open ring gives the same result.

    Returns:
        float: Area in square meters (always >= 0)
    """
    pts = _as_lnglat_array(ring)
    if len(pts) < 3:
        return 0.0

    lng = np.radians(pts[:, 0])
    lat = np.radians(pts[:, 1])
    x = EARTH_RADIUS_M * lng * np.cos(lat)
    y = EARTH_RADIUS_M * lat

    x_prev = np.roll(x, 1)
    y_prev = np.roll(y, 1)
    area = np.sum((x_prev + x) * (y_prev - y)) / 2
    return float(abs(area))


def close_ring(points):
    """
    Close a point sequence into a polygon ring.

    Args:
        points: Sequence of (lng, lat) pairs

    Returns:
        list: The points with the first point appended again (unchanged if
              already closed or empty)
    """
    ring = [tuple(p) for p in points]
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring
