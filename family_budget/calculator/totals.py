"""
Derived Totals Calculator

Pure function of FormState. Called on every render; there is no cache
because the computation is a handful of additions.
"""

from decimal import Decimal

from family_budget.calculator.coercion import ZERO, to_number
from family_budget.models.form import ChildEntry, ChildType, FormState, YesNo
from family_budget.models.totals import Totals

# Daily pocket money is approximated as 30 days per month
DAYS_PER_MONTH = 30


def child_contribution(child: ChildEntry) -> Decimal:
    """Monthly cost of one child, using the field set for its type."""
    if child.type == ChildType.INFANT:
        return to_number(child.doctor) + to_number(child.milk) + to_number(child.diapers)
    return (
        to_number(child.school)
        + to_number(child.transport)
        + to_number(child.stationery)
        + to_number(child.daily) * DAYS_PER_MONTH
    )


def compute_totals(state: FormState) -> Totals:
    """Income, expense and balance breakdown for a form."""
    child_expenses = sum((child_contribution(c) for c in state.children), ZERO)
    general = to_number(state.food) + to_number(state.services)

    if state.car == YesNo.YES and state.taxi == YesNo.YES:
        taxi_income = to_number(state.taxi_income)
    else:
        taxi_income = ZERO

    total_income = to_number(state.salary) + taxi_income
    total_expenses = general + child_expenses

    return Totals(
        child_expenses=child_expenses,
        general=general,
        taxi_income=taxi_income,
        total_income=total_income,
        total_expenses=total_expenses,
        balance=total_income - total_expenses,
    )
