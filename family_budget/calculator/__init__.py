"""
Calculation helpers: text-to-number coercion and currency display.

compute_totals lives in family_budget.calculator.totals; it depends on the
models package, which itself depends on coercion, so it is not re-exported here.
"""

from family_budget.calculator.coercion import ZERO, to_count, to_number
from family_budget.calculator.formatting import (
    CURRENCY_SUFFIX,
    format_amount,
    format_currency,
)

__all__ = [
    "CURRENCY_SUFFIX",
    "ZERO",
    "format_amount",
    "format_currency",
    "to_count",
    "to_number",
]
