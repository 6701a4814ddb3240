"""
Keeps the four unit boxes (sq ft, lin ft, sq yd, acres) consistent with one
canonical RawMeasurement, whichever box the user edits.
"""

import logging
import math

from .models import UNITS, MeasurementKind, RawMeasurement, UnitValues

# Conversion constants
SQFT_PER_SQM = 10.7639
SQYD_PER_SQM = 1.19599
SQM_PER_ACRE = 4046.86
FT_PER_M = 3.28084
YD_PER_M = 1.09361

# Order in which hand-entered boxes are checked when there is no drawing
MANUAL_ENTRY_ORDER = ("sqft", "sqyd", "acre", "linft")

AREA_UNITS = ("sqft", "sqyd", "acre")

DEFAULT_DEBOUNCE_MS = 150


def _check_unit(unit):
    if unit not in UNITS:
        raise ValueError(f"Unknown unit: {unit!r}")


def derive_all(raw):
    """
    Derive every displayed unit from a raw measurement.

    For a line, ``sqyd`` holds linear yards and ``sqft``/``acre`` are None.

    Args:
        raw: RawMeasurement, or None

    Returns:
        UnitValues
    """
    if raw is None:
        return UnitValues()

    value = raw.value_meters
    if raw.kind is MeasurementKind.LINE:
        return UnitValues(sqft=None, linft=value * FT_PER_M, sqyd=value * YD_PER_M, acre=None)

    linft = raw.perimeter_meters * FT_PER_M if raw.perimeter_meters is not None else None
    return UnitValues(
        sqft=value * SQFT_PER_SQM,
        linft=linft,
        sqyd=value * SQYD_PER_SQM,
        acre=value / SQM_PER_ACRE,
    )


def apply_edit(unit, value, raw):
    """
    Fold an edited unit value back into the raw measurement.

    The measurement kind never changes. Editing ``linft`` on an area only sets
    its perimeter.

    Args:
        unit: "sqft", "linft", "sqyd" or "acre"
        value: New value in that unit
        raw: Current RawMeasurement

    Returns:
        RawMeasurement

    Raises:
        ValueError: Unknown unit, or a unit with no meaning for a line
    """
    _check_unit(unit)
    value = float(value)

    if raw.kind is MeasurementKind.LINE:
        if unit == "linft":
            return RawMeasurement.line(value / FT_PER_M)
        if unit == "sqyd":
            return RawMeasurement.line(value / YD_PER_M)
        raise ValueError(f"{unit} does not apply to a line measurement")

    if unit == "linft":
        return RawMeasurement.area(raw.value_meters, value / FT_PER_M)
    return RawMeasurement.area(_area_to_square_meters(unit, value), raw.perimeter_meters)


def from_unit(unit, value):
    """
    Synthesize a raw measurement from one hand-entered value.

    Area units give an area with no perimeter; ``linft`` gives a line.
    """
    _check_unit(unit)
    value = float(value)
    if unit == "linft":
        return RawMeasurement.line(value / FT_PER_M)
    return RawMeasurement.area(_area_to_square_meters(unit, value))


def _area_to_square_meters(unit, value):
    if unit == "sqft":
        return value / SQFT_PER_SQM
    if unit == "sqyd":
        return value / SQYD_PER_SQM
    return value * SQM_PER_ACRE


def applies_to(unit, raw):
    """Check if a unit is meaningful for the measurement's kind"""
    return raw.is_area or unit not in ("sqft", "acre")


def parse_quantity(text):
    """
    Parse a unit box entry.

    Returns:
        float, or None for empty, unparseable or non-finite input
    """
    if text is None:
        return None
    if isinstance(text, (int, float)):
        value = float(text)
    else:
        text = str(text).strip().replace(",", "")
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    # "nan", "inf" and overflowing exponents parse but are not quantities
    return value if math.isfinite(value) else None


class UnitSynchronizer:
    """
    Owns the current RawMeasurement and the four displayed unit values.

    Displays are pushed through ``on_display(unit, value)``. The box the user
    has focus in is never overwritten. Recalculation after an edit can be
    debounced by passing ``schedule(delay_ms, callback) -> handle`` and
    ``cancel(handle)`` (e.g. Tk's ``after``/``after_cancel``); without them it
    runs immediately.
    """

    def __init__(self, on_display=None, schedule=None, cancel=None,
                 debounce_ms=DEFAULT_DEBOUNCE_MS):
        self.on_display = on_display
        self.schedule = schedule
        self.cancel = cancel
        self.debounce_ms = debounce_ms

        self.raw = None
        self.geometry_backed = False
        self.fields = dict.fromkeys(UNITS)
        self.focused = None

        self._pending = None
        self._pending_edit = None

    def get_all_measurements(self):
        """Current values for every unit"""
        return derive_all(self.raw)

    def set_focus(self, unit):
        """Record which box has keyboard focus (None when none does)"""
        if unit is not None:
            _check_unit(unit)
        self.focused = unit

    def set_measurement(self, raw, geometry_backed=True):
        """
        Replace the canonical measurement wholesale (e.g. after a finished drawing).

        Every box is refreshed, including the focused one.
        """
        self._cancel_pending()
        self.raw = raw
        self.geometry_backed = geometry_backed and raw is not None
        self._push(skip=None)

    def clear(self):
        """Drop the measurement and blank every box"""
        self._cancel_pending()
        self.raw = None
        self.geometry_backed = False
        self._push(skip=None)

    def on_measurement_input(self, unit, value, focused=None):
        """
        Handle the user typing into a unit box.

        Args:
            unit: Box that changed
            value: Raw text (or number) now in the box
            focused: Box holding focus; defaults to the edited one
        """
        _check_unit(unit)
        self.fields[unit] = parse_quantity(value)
        self.focused = unit if focused is None else focused
        self._pending_edit = unit

        if self.schedule is None or not self.debounce_ms:
            self.recalculate()
            return

        self._cancel_pending()
        self._pending = self.schedule(self.debounce_ms, self.recalculate)

    def recalculate(self):
        """Apply the latest edit to the measurement and refresh the other boxes"""
        self._pending = None
        unit = self._pending_edit
        self._pending_edit = None
        if unit is None:
            return

        value = self.fields[unit]
        if self.geometry_backed:
            new_raw = self._edit_drawn(unit, value)
        else:
            new_raw = self._edit_manual(unit, value)

        if new_raw is None and self.geometry_backed:
            return

        self.raw = new_raw
        self._push(skip=self.focused)

    def _edit_drawn(self, unit, value):
        if value is None or value <= 0:
            logging.debug(f"Ignoring non-positive {unit} edit on a drawn shape")
            return None
        if not applies_to(unit, self.raw):
            logging.warning(f"Ignoring {unit} edit: not meaningful for a line measurement")
            return None
        return apply_edit(unit, value, self.raw)

    def _edit_manual(self, unit, value):
        if value is not None and value > 0:
            if self.raw is not None and applies_to(unit, self.raw):
                return apply_edit(unit, value, self.raw)
            return from_unit(unit, value)

        for candidate in MANUAL_ENTRY_ORDER:
            other = self.fields[candidate]
            if other is not None and other > 0:
                if self.raw is not None and applies_to(candidate, self.raw):
                    return apply_edit(candidate, other, self.raw)
                return from_unit(candidate, other)
        return None

    def _push(self, skip):
        values = derive_all(self.raw)._asdict()
        for unit in UNITS:
            if unit == skip:
                continue
            self.fields[unit] = values[unit]
            if self.on_display:
                self.on_display(unit, values[unit])

    def _cancel_pending(self):
        if self._pending is not None and self.cancel is not None:
            self.cancel(self._pending)
        self._pending = None
