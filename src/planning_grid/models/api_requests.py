from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import AliasChoices, Field, field_serializer, model_validator

from planning_grid.models.common import StrictModel


class _KeyedByPlanOrYear(StrictModel):
    """Body keyed by either a plan id or a Buddhist-era year."""

    plan_id: int | None = Field(default=None, gt=0)
    year: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _one_key(self):
        if (self.plan_id is None) == (self.year is None):
            raise ValueError("exactly one of plan_id or year is required")
        return self


class PriceItem(StrictModel):
    """Unit price of one line item as written to the ledger."""

    product_id: int = Field(
        gt=0,
        validation_alias=AliasChoices("product_id", "item_external_id"),
    )
    sell_price: Decimal = Field(default=Decimal("0"), ge=0)
    buy_price: Decimal = Field(default=Decimal("0"), ge=0)
    comment: str = ""

    @field_serializer("sell_price", "buy_price")
    def _as_number(self, value: Decimal) -> float:
        return float(value)


class BulkPriceRequest(_KeyedByPlanOrYear):
    """``PUT /unit-prices/bulk`` body."""

    items: list[PriceItem] = Field(default_factory=list)


class PriceItemRequest(_KeyedByPlanOrYear, PriceItem):
    """``PUT /unit-prices`` body for a single item."""


class CellWrite(StrictModel):
    """One non-zero amount of the bulk cell write."""

    unit_id: int = Field(gt=0)
    product_id: int = Field(
        gt=0,
        validation_alias=AliasChoices("product_id", "item_external_id"),
    )
    month: int = Field(ge=1, le=12)
    amount: Decimal = Field(ge=0)

    @field_serializer("amount")
    def _as_number(self, value: Decimal) -> float:
        return float(value)


class BulkCellRequest(StrictModel):
    """``PUT /revenue/sale-goals/bulk`` body."""

    plan_id: Annotated[int, Field(gt=0)]
    branch_id: Annotated[int, Field(gt=0)]
    cells: list[CellWrite] = Field(default_factory=list)
