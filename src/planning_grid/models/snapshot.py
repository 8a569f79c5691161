from __future__ import annotations

from decimal import Decimal

from pydantic import Field

from planning_grid.models.common import FrozenModel

ZERO = Decimal("0")


class Totals(FrozenModel):
    """Quantity, amount and cost accumulated over one scope."""

    qty: Decimal = ZERO
    amount: Decimal = ZERO
    cost: Decimal = ZERO
    # True when at least one cell in scope has non-empty text.
    any: bool = False


class AggregateSnapshot(FrozenModel):
    """Derived totals of a grid at one point in time."""

    rows: dict[str, Totals] = Field(default_factory=dict)
    columns: dict[str, Totals] = Field(default_factory=dict)
    grand: Totals = Field(default_factory=Totals)

    def row(self, item_id: str) -> Totals:
        return self.rows.get(item_id, Totals())

    def column(self, period_key: str) -> Totals:
        return self.columns.get(period_key, Totals())
