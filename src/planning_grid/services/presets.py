from __future__ import annotations

from planning_grid.grid.periods import DEFAULT_FISCAL_START_MONTH, fiscal_periods
from planning_grid.models.enums import PriceKey
from planning_grid.models.grid import EndpointConfig, GridConfig

# name -> (title, business group, saved-cell read key)
SALE_GOAL_PAGES: dict[str, tuple[str, int, PriceKey]] = {
    "procurement": ("Procurement sales plan", 1, PriceKey.YEAR),
    "collection": ("Agricultural collection plan", 3, PriceKey.PLAN),
    "processing": ("Agricultural processing plan", 4, PriceKey.PLAN),
    "seed": ("Seed project sales plan", 5, PriceKey.PLAN),
}


def sale_goal_grid(
    name: str,
    *,
    fiscal_start_month: int = DEFAULT_FISCAL_START_MONTH,
    max_decimals: int | None = 3,
) -> GridConfig:
    """Config of one sale-goal page: catalog items x fiscal months, priced per item."""

    try:
        title, group, read_key = SALE_GOAL_PAGES[name]
    except KeyError as exc:
        raise KeyError(f"unknown grid preset {name!r}; choose from {', '.join(SALE_GOAL_PAGES)}") from exc
    return GridConfig(
        name=name,
        title=title,
        periods=fiscal_periods(fiscal_start_month),
        business_group=group,
        endpoints=EndpointConfig(read_key=read_key),
        max_decimals=max_decimals,
    )


def preset_names() -> list[str]:
    return list(SALE_GOAL_PAGES)
