from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, ConfigDict, Field, field_validator, model_validator

from planning_grid.grid.sanitizer import to_number
from planning_grid.models.common import FrozenModel, StrictModel
from planning_grid.models.enums import PriceKey


class Period(FrozenModel):
    """One column of the fiscal axis."""

    key: str = Field(min_length=1)
    label: str
    calendar_month: int = Field(ge=1, le=12)


class LineItem(FrozenModel):
    """One plannable row of the grid."""

    id: str = Field(min_length=1)
    name: str
    unit: str = ""
    editable: bool = True
    # Backend identifier (product_id / business_earning_id); None = unresolved.
    external_id: int | None = None


class PriceRecord(StrictModel):
    """Per-item unit price as sanitized text plus auxiliary fields."""

    sell_price: str = ""
    buy_price: str = ""
    note: str = ""


class Cell(FrozenModel):
    """Stored quantity text for one (item, period) coordinate."""

    raw_text: str = ""

    @property
    def numeric_value(self) -> Decimal:
        return to_number(self.raw_text)

    @property
    def is_blank(self) -> bool:
        return self.raw_text == ""


class RemoteCellRecord(StrictModel):
    """One saved value as returned by the ledger read endpoint."""

    item_external_id: int = Field(
        validation_alias=AliasChoices(
            "item_external_id",
            "product_id",
            "business_earning_id",
            "b_earnings",
        )
    )
    month: int
    amount: Decimal = Field(default=Decimal("0"), validation_alias=AliasChoices("amount", "value"))
    unit_id: int | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _none_amount_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class CatalogItem(StrictModel):
    """Line item with its latest price as listed by the product catalog."""

    product_id: int | None = None
    name: str = Field(default="", validation_alias=AliasChoices("name", "product_type"))
    unit: str = ""
    business_group: int | None = None
    sell_price: Decimal | None = None
    buy_price: Decimal | None = None
    comment: str | None = None

    model_config = ConfigDict(extra="ignore")


class Unit(FrozenModel):
    """Branch sub-unit; the first one is the default unit for saves."""

    id: int = Field(gt=0)
    name: str = ""


class IdentifierGap(FrozenModel):
    """Line item that cannot be saved because it has no backend identifier."""

    item_id: str
    name: str
    has_values: bool = False


class LoadResult(StrictModel):
    """Outcome of applying remote records to a grid."""

    applied: int = 0
    discarded: int = 0


class EndpointConfig(FrozenModel):
    """Paths and body shapes of the ledger endpoints for one grid."""

    units: str = "/lists/unit/search"
    catalog: str | None = "/lists/products-by-group-latest"
    cells_read: str = "/revenue/sale-goals"
    cells_bulk: str = "/revenue/sale-goals/bulk"
    price_bulk: str | None = "/unit-prices/bulk"
    price_item: str | None = "/unit-prices"
    # Query key for reading saved cells.
    read_key: PriceKey = PriceKey.PLAN
    # Primary then alternate body key for price writes.
    price_keys: tuple[PriceKey, PriceKey] = (PriceKey.PLAN, PriceKey.YEAR)


class GridConfig(FrozenModel):
    """Everything that distinguishes one grid page from another."""

    name: str = Field(min_length=1)
    title: str = ""
    periods: tuple[Period, ...]
    items: tuple[LineItem, ...] = ()
    business_group: int | None = None
    endpoints: EndpointConfig = Field(default_factory=EndpointConfig)
    max_decimals: int | None = None
    # Read/write cells under the branch's default unit only.
    bind_default_unit: bool = True

    @model_validator(mode="after")
    def _check_axes(self) -> "GridConfig":
        if len(self.periods) != 12:
            raise ValueError(f"a fiscal grid needs exactly 12 periods, got {len(self.periods)}")
        keys = [p.key for p in self.periods]
        if len(set(keys)) != len(keys):
            raise ValueError("period keys must be unique")
        months = [p.calendar_month for p in self.periods]
        if len(set(months)) != len(months):
            raise ValueError("period calendar months must be unique")
        ids = [item.id for item in self.items]
        if len(set(ids)) != len(ids):
            raise ValueError("line item ids must be unique")
        return self
