"""
GestureClassifier - Tells a deliberate tap apart from a map pan or long-press.

Only raw pointer-down/up positions and timestamps are used, since map widgets
tend to swallow their own click events while a drawing overlay is attached.
"""

import logging
import math
from collections import namedtuple
from enum import Enum

from .models import GeoPoint

PRIMARY_BUTTON = 0
TAP_MAX_DISTANCE_PX = 12
TAP_MAX_DURATION_MS = 500


class GestureKind(Enum):
    """Outcome of feeding one pointer event to the classifier"""
    NONE = "none"              # event had no effect
    PRESSED = "pressed"        # candidate start recorded
    TAP = "tap"                # accepted: a point should be placed
    PAN = "pan"                # moved too far between down and up
    LONG_PRESS = "long_press"  # held too long
    IGNORED = "ignored"        # wrong button or released over UI chrome


PointerDown = namedtuple("PointerDown", ["x", "y", "t", "button"])
PointerUp = namedtuple("PointerUp", ["x", "y", "t", "button", "target_is_canvas"])
Candidate = namedtuple("Candidate", ["x", "y", "t"])


def transition(candidate, event, active,
               max_distance=TAP_MAX_DISTANCE_PX, max_duration=TAP_MAX_DURATION_MS):
    """
    Pure gesture state transition.

    Args:
        candidate: Recorded pointer-down Candidate, or None
        event: PointerDown or PointerUp
        active: Whether a drawing session is accepting points
        max_distance: Largest down/up separation (pixels) still counted as a tap
        max_duration: Longest press (milliseconds) still counted as a tap

    Returns:
        (new_candidate, GestureKind)
    """
    if isinstance(event, PointerDown):
        if event.button != PRIMARY_BUTTON or not active:
            return candidate, GestureKind.NONE
        return Candidate(event.x, event.y, event.t), GestureKind.PRESSED

    if candidate is None:
        return None, GestureKind.NONE

    dist = math.hypot(event.x - candidate.x, event.y - candidate.y)
    elapsed = event.t - candidate.t

    if event.button != PRIMARY_BUTTON or not event.target_is_canvas:
        return None, GestureKind.IGNORED
    if dist > max_distance:
        return None, GestureKind.PAN
    if elapsed > max_duration:
        return None, GestureKind.LONG_PRESS
    return None, GestureKind.TAP


class GestureClassifier:
    """
    Feeds pointer events through ``transition`` and places points on taps.

    The host supplies ``unproject(x, y) -> (lng, lat)`` for its map canvas;
    pointer coordinates must already be relative to that canvas.
    """

    def __init__(self, session, unproject,
                 max_distance=TAP_MAX_DISTANCE_PX, max_duration=TAP_MAX_DURATION_MS):
        """
        Initialize the classifier.

        Args:
            session: DrawingSession receiving accepted points
            unproject: Callable converting canvas pixels to (lng, lat)
            max_distance: Tap distance threshold in pixels (default: 12)
            max_duration: Tap time threshold in milliseconds (default: 500)
        """
        self.session = session
        self.unproject = unproject
        self.max_distance = max_distance
        self.max_duration = max_duration
        self.candidate = None

    def set_thresholds(self, max_distance=None, max_duration=None):
        """Change the tap thresholds"""
        if max_distance is not None:
            self.max_distance = max_distance
        if max_duration is not None:
            self.max_duration = max_duration

    def reset(self):
        """Forget any pending pointer-down"""
        self.candidate = None

    def on_pointer_down(self, x, y, t, button=PRIMARY_BUTTON):
        """Record a candidate tap start"""
        self.candidate, kind = transition(
            self.candidate, PointerDown(x, y, t, button), self.session.is_drawing(),
            self.max_distance, self.max_duration)
        return kind

    def on_pointer_up(self, x, y, t, button=PRIMARY_BUTTON, target_is_canvas=True):
        """
        Classify the release and add a point on a tap.

        Returns:
            (GestureKind, GeoPoint or None)
        """
        self.candidate, kind = transition(
            self.candidate, PointerUp(x, y, t, button, target_is_canvas),
            self.session.is_drawing(), self.max_distance, self.max_duration)

        if kind is not GestureKind.TAP:
            if kind is not GestureKind.NONE:
                logging.debug(f"Gesture ignored: {kind.value} at ({x}, {y})")
            return kind, None

        # Session may have ended between down and up
        if not self.session.is_drawing():
            return GestureKind.IGNORED, None

        point = GeoPoint(*self.unproject(x, y))
        self.session.add_point(point)
        return kind, point
