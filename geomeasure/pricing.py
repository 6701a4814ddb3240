"""
Quote-form helpers: unit labels, price resolution, totals and the
"price per other unit" display.
"""

from .unit_sync import AREA_UNITS, derive_all

SQFT_PER_SQYD = 9
SQFT_PER_ACRE = 43560

UNIT_LABELS = {
    "sqft": "sq ft",
    "linft": "lin ft",
    "sqyd": "sq yd",
    "acre": "acres",
}


def unit_label(unit):
    """Get the display label for a unit ("sq ft" for anything unknown)"""
    return UNIT_LABELS.get(unit, "sq ft")


def display_measurement(raw, unit, manual=None):
    """
    Quantity to price, in the quote's unit.

    A positive hand-entered figure wins over the drawn measurement. Otherwise
    the value is the one shown in the matching unit box, so an area quoted in
    lin ft prices its perimeter. A unit with no value for the shape (sq ft on
    a line, lin ft on an area with no perimeter) gives 0.

    Args:
        raw: RawMeasurement, or None
        unit: Quote unit ("sqft", "linft", "sqyd" or "acre")
        manual: Optional hand-entered quantity

    Returns:
        float
    """
    if manual is not None and manual > 0:
        return float(manual)
    value = getattr(derive_all(raw), unit, None)
    return 0.0 if value is None else float(value)


def resolve_price(manual=None, dollars=0, cents=0, markup_pct=0):
    """
    Price per unit after markup.

    A positive manual price overrides the dollars/cents picker.

    Raises:
        ValueError: Markup below -100%
    """
    if markup_pct is not None and markup_pct < -100:
        raise ValueError("Markup cannot be below -100%")

    if manual is not None and manual > 0:
        base = float(manual)
    else:
        base = float(dollars or 0) + float(cents or 0) / 100
    return base * (1 + (markup_pct or 0) / 100)


def quote_total(quantity, qty, price):
    """
    Args:
        quantity: Measured quantity for one item
        qty: Number of identical items (values below 1 count as 1)
        price: Price per unit

    Returns:
        (total_quantity, total_price)
    """
    qty = max(1, int(qty or 1))
    total_quantity = quantity * qty
    return total_quantity, total_quantity * price


def price_per_other_units(price, unit):
    """
    Express a unit price in the other area units.

    The price is first turned into a per-square-foot baseline. Linear feet
    have no area equivalent, so a per-linear-foot price only maps to itself.

    Args:
        price: Price per ``unit``
        unit: Unit the price is quoted in

    Returns:
        dict: unit -> price (None where there is no equivalent)
    """
    if unit == "linft":
        return {"sqft": None, "linft": float(price), "sqyd": None, "acre": None}

    if unit == "sqyd":
        per_sqft = price / SQFT_PER_SQYD
    elif unit == "acre":
        per_sqft = price / SQFT_PER_ACRE
    else:
        per_sqft = float(price)

    return {
        "sqft": per_sqft,
        "linft": None,
        "sqyd": per_sqft * SQFT_PER_SQYD,
        "acre": per_sqft * SQFT_PER_ACRE,
    }


def use_measurement(item, units, unit=None):
    """
    Copy the current measurement into a line item.

    Only ``area`` and ``unit`` change; type, price and qty are kept.

    Args:
        item: LineItem to fill
        units: Current UnitValues
        unit: Unit to take; defaults to sq ft for an area, lin ft for a line

    Returns:
        LineItem

    Raises:
        ValueError: No value is available in the requested unit
    """
    if unit is None:
        unit = "sqft" if units.sqft is not None else "linft"
    value = getattr(units, unit, None)
    if value is None:
        raise ValueError(f"No {unit_label(unit)} measurement available")
    return item._replace(area=value, unit=unit)


def line_item_total(item):
    """Total price of a LineItem"""
    return quote_total(item.area, item.qty, item.price)[1]


def format_quantity(value, unit=None):
    """Format a unit box value: one decimal, acres to four, blank for None"""
    if value is None:
        return ""
    if unit == "acre":
        return f"{value:,.4f}"
    return f"{value:,.1f}"


def format_money(value):
    return f"${value:,.2f}"


def is_area_unit(unit):
    return unit in AREA_UNITS

