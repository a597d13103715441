"""Currency display helpers."""

from decimal import Decimal, ROUND_HALF_UP

from family_budget.calculator.coercion import to_number

CURRENCY_SUFFIX = "د.ع"

# ASCII digits and grouping comma -> Arabic-Indic digits and Arabic thousands separator
_ARABIC_DIGITS = str.maketrans("0123456789,", "٠١٢٣٤٥٦٧٨٩٬")


def format_currency(value, arabic_digits: bool = True) -> str:
    """
    Format a number like 1234567.5 as '١٬٢٣٤٬٥٦٨' (or '1,234,568').

    Rounds to zero fractional digits, half away from zero.
    Non-numeric input renders as 0.
    """
    rounded = to_number(value).to_integral_value(rounding=ROUND_HALF_UP)
    if rounded == 0:
        # avoid "-0"
        rounded = Decimal("0")
    text = f"{rounded:,f}"
    if arabic_digits:
        return text.translate(_ARABIC_DIGITS)
    return text


def format_amount(value, arabic_digits: bool = True) -> str:
    """Formatted value followed by the dinar suffix."""
    return f"{format_currency(value, arabic_digits)} {CURRENCY_SUFFIX}"
