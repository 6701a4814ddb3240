"""Shared fixtures for geomeasure tests."""
import math
import pytest
from geomeasure.drawing_session import DrawingSession
from geomeasure.geodesy import EARTH_RADIUS_M
from geomeasure.projection import GeoReference

DALLAS = (-96.7970, 32.7767)


def degrees_for_meters(meters):
    """Angular span of an arc of the given length on the mean-radius sphere."""
    return math.degrees(meters / EARTH_RADIUS_M)


def square_ring(side_m, lng0=0.0, lat0=0.0):
    """Closed square ring with ~side_m sides, south-west corner at (lng0, lat0)."""
    d = degrees_for_meters(side_m)
    return [(lng0, lat0), (lng0 + d, lat0), (lng0 + d, lat0 + d), (lng0, lat0 + d), (lng0, lat0)]


class Recorder:
    """Collects callback invocations."""
    def __init__(self):
        self.calls = []

    def __call__(self, *args):
        self.calls.append(args[0] if len(args) == 1 else args)

    @property
    def last(self):
        return self.calls[-1]


class FakeScheduler:
    """Stand-in for Tk's after/after_cancel."""
    def __init__(self):
        self.pending = {}
        self.cancelled = []
        self._next = 0

    def schedule(self, delay_ms, callback):
        self._next += 1
        self.pending[self._next] = (delay_ms, callback)
        return self._next

    def cancel(self, handle):
        self.cancelled.append(handle)
        self.pending.pop(handle, None)

    def run_all(self):
        pending, self.pending = self.pending, {}
        for _, callback in pending.values():
            callback()


@pytest.fixture
def previews():
    return Recorder()


@pytest.fixture
def geometries():
    return Recorder()


@pytest.fixture
def session(previews, geometries):
    return DrawingSession(on_preview=previews, on_geometry=geometries)


@pytest.fixture
def georef():
    """800x600 px map at 0.5 m/px around Dallas."""
    return GeoReference.around(DALLAS, 0.5, 800, 600)


@pytest.fixture
def scheduler():
    return FakeScheduler()
