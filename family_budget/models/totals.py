"""Derived totals, recomputed from FormState on every render."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class Totals(BaseModel):
    """
    Income / expense breakdown for one FormState.

    Values are unrounded; only the display formatter rounds.
    """

    model_config = ConfigDict(frozen=True)

    child_expenses: Decimal = Decimal("0")
    general: Decimal = Decimal("0")
    taxi_income: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")

    @property
    def is_deficit(self) -> bool:
        """Negative balance: expenses exceed income."""
        return self.balance < 0

    @property
    def balance_magnitude(self) -> Decimal:
        """Balance shown without sign; is_deficit picks the label."""
        return abs(self.balance)
