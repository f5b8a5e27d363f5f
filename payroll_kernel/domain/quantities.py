"""
Decimal helpers for hours and money.

Hours and currency amounts are always ``Decimal``.  Rounding to two places
uses ROUND_HALF_UP, matching how payroll figures are presented to people.
"""

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
TWO_PLACES = Decimal("0.01")
MINUTES_PER_HOUR = Decimal("60")


def to_decimal(value: Decimal | int | float | str | None) -> Decimal:
    """Coerce a numeric value to Decimal (None -> 0). Floats go through str()."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(value: Decimal) -> Decimal:
    """Round to two decimal places, half up."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def non_negative(value: Decimal) -> Decimal:
    """Clamp a quantity at zero."""
    return value if value > ZERO else ZERO


def minutes_to_hours(minutes: int) -> Decimal:
    """Convert a minute count to hours rounded to two places."""
    return round2(Decimal(minutes) / MINUTES_PER_HOUR)
