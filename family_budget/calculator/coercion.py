"""
Number Coercion

Form fields hold free text. Validation is deliberately NOT done at input
time: anything the user typed is turned into a number here, at calculation
time, and anything that isn't a finite number counts as zero.
"""

from decimal import Decimal, InvalidOperation, ROUND_FLOOR
from typing import Optional

ZERO = Decimal("0")


def to_number(value) -> Decimal:
    """
    Convert arbitrary input into a finite Decimal.

    Empty strings, whitespace, non-numeric text, booleans, None and
    NaN/Infinity all coerce to 0. Never raises.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        return Decimal(value)
    else:
        text = str(value).strip()
        if not text:
            return ZERO
        try:
            number = Decimal(text)
        except (InvalidOperation, ValueError):
            return ZERO
    if not number.is_finite():
        return ZERO
    return number


def to_count(value, maximum: Optional[int] = None) -> int:
    """
    Coerce a count field (e.g. number of children) to a non-negative int.

    When maximum is given, larger values are clamped to it.
    """
    number = to_number(value)
    if number <= 0:
        return 0
    if maximum is not None and number >= maximum:
        return maximum
    return int(number.to_integral_value(rounding=ROUND_FLOOR))
