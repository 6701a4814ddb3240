"""
MeasurementEngine - The drawing session, gesture classifier and unit boxes
wired together behind the operations a host application calls.
"""

import logging

from .drawing_session import DrawingSession
from .gesture import PRIMARY_BUTTON, TAP_MAX_DISTANCE_PX, TAP_MAX_DURATION_MS, GestureClassifier
from .unit_sync import DEFAULT_DEBOUNCE_MS, UnitSynchronizer


class MeasurementEngine:
    """
    One measuring context: a single drawing session and a single current
    measurement.

    Host callbacks:
        unproject(x, y) -> (lng, lat): canvas pixel to map coordinate
        on_preview(PreviewData): live points changed
        on_geometry(Geometry or None): finished shape to persist/draw, or None when cleared
        on_display(unit, value): a unit box needs a new value
        schedule/cancel: optional debounce timer (e.g. Tk after/after_cancel)
    """

    def __init__(self, unproject, on_preview=None, on_geometry=None, on_display=None,
                 schedule=None, cancel=None, debounce_ms=DEFAULT_DEBOUNCE_MS,
                 tap_distance=TAP_MAX_DISTANCE_PX, tap_time=TAP_MAX_DURATION_MS):
        self.session = DrawingSession(on_preview=on_preview, on_geometry=on_geometry)
        self.gestures = GestureClassifier(self.session, unproject,
                                          max_distance=tap_distance, max_duration=tap_time)
        self.units = UnitSynchronizer(on_display=on_display, schedule=schedule,
                                      cancel=cancel, debounce_ms=debounce_ms)

    # Drawing

    def start_drawing(self, mode):
        self.gestures.reset()
        self.session.start(mode)
        self.units.clear()

    def undo_last_point(self):
        return self.session.undo()

    def finish_drawing(self):
        """
        Finish the current drawing and make it the current measurement.

        Returns:
            Geometry: The finished shape (GeoJSON via ``to_geojson()``)

        Raises:
            InsufficientPointsError, DegenerateGeometryError: drawing stays open
            InvalidStateError: Not drawing
        """
        geometry, measurement = self.session.finish()
        self.gestures.reset()
        self.units.set_measurement(measurement, geometry_backed=True)
        return geometry

    def cancel_drawing(self):
        self.gestures.reset()
        self.session.cancel()

    def clear_drawing(self):
        self.gestures.reset()
        self.session.clear()
        self.units.clear()
        logging.info("Measurement cleared")

    def is_drawing(self):
        return self.session.is_drawing()

    # Pointer events

    def on_pointer_down(self, x, y, t, button=PRIMARY_BUTTON):
        return self.gestures.on_pointer_down(x, y, t, button)

    def on_pointer_up(self, x, y, t, button=PRIMARY_BUTTON, target_is_canvas=True):
        return self.gestures.on_pointer_up(x, y, t, button, target_is_canvas)

    # Unit boxes

    def get_all_measurements(self):
        return self.units.get_all_measurements()

    def get_measurement(self):
        """Current RawMeasurement, or None"""
        return self.units.raw

    def on_measurement_input(self, unit, value, focused=None):
        self.units.on_measurement_input(unit, value, focused)

    def set_focus(self, unit):
        self.units.set_focus(unit)

    def get_status_message(self):
        return self.session.get_status_message()
