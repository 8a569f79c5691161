from __future__ import annotations

import asyncio
from typing import Any

from planning_grid.models.api_requests import CellWrite, PriceItem
from planning_grid.models.enums import PriceKey
from planning_grid.models.internal import DEFAULT_YEAR_OFFSET


class InMemoryKeyValueStore:
    """Process-local key-value store for tokens in tests and scripts."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def delete(self, key: str) -> None:
        self._items.pop(key, None)


class InMemoryLedgerStore:
    """In-memory ledger backing the reference API.

    Holds units per branch, the product catalog per plan, saved cells per
    (plan, branch) and unit prices per plan. Which price body keys are
    accepted, and whether the bulk price endpoint exists at all, can be
    switched to mimic different backend deployments.
    """

    def __init__(
        self,
        *,
        accepted_price_keys: tuple[PriceKey, ...] = (PriceKey.PLAN, PriceKey.YEAR),
        bulk_prices_enabled: bool = True,
        year_offset: int = DEFAULT_YEAR_OFFSET,
    ) -> None:
        """Initialize empty store guarded by one async lock."""

        self.accepted_price_keys = set(accepted_price_keys)
        self.bulk_prices_enabled = bulk_prices_enabled
        self.year_offset = year_offset
        self._units: dict[int, list[dict[str, Any]]] = {}
        self._catalog: dict[int, list[dict[str, Any]]] = {}
        self._cells: dict[tuple[int, int], list[dict[str, Any]]] = {}
        self._prices: dict[int, dict[int, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    # Seeding runs before the server starts serving, so it skips the lock.

    def seed_units(self, branch_id: int, units: list[dict[str, Any]]) -> None:
        self._units[branch_id] = [dict(u) for u in units]

    def seed_catalog(self, plan_id: int, items: list[dict[str, Any]]) -> None:
        """Register catalog rows; each needs ``product_id`` and ``business_group``."""

        self._catalog.setdefault(plan_id, []).extend(dict(i) for i in items)

    def plan_for(self, key: PriceKey, value: int) -> int:
        """Plan id addressed by a plan id or a Buddhist-era year."""

        return value if key is PriceKey.PLAN else value - self.year_offset

    async def list_units(self, branch_id: int) -> list[dict[str, Any]]:
        async with self._lock:
            return [dict(u) for u in self._units.get(branch_id, [])]

    async def products_by_group(self, plan_id: int) -> dict[str, dict[str, list[dict[str, Any]]]]:
        """Catalog grouped by business group, with the latest saved prices merged in."""

        async with self._lock:
            prices = self._prices.get(plan_id, {})
            grouped: dict[str, dict[str, list[dict[str, Any]]]] = {}
            for row in self._catalog.get(plan_id, []):
                merged = dict(row)
                saved = prices.get(row.get("product_id"))
                if saved is not None:
                    merged.update(saved)
                group = str(row.get("business_group"))
                grouped.setdefault(group, {"items": []})["items"].append(merged)
            return grouped

    async def read_cells(self, plan_id: int, branch_id: int) -> list[dict[str, Any]]:
        async with self._lock:
            return [dict(c) for c in self._cells.get((plan_id, branch_id), [])]

    async def replace_cells(self, plan_id: int, branch_id: int, cells: list[CellWrite]) -> int:
        """Replace every saved cell of one (plan, branch); returns the row count."""

        async with self._lock:
            self._cells[(plan_id, branch_id)] = [cell.model_dump(mode="json") for cell in cells]
            return len(cells)

    async def put_prices(self, key: PriceKey, value: int, items: list[PriceItem]) -> int:
        plan_id = self.plan_for(key, value)
        async with self._lock:
            bucket = self._prices.setdefault(plan_id, {})
            for item in items:
                bucket[item.product_id] = item.model_dump(mode="json", exclude={"product_id"})
            return len(items)

    async def price_of(self, plan_id: int, product_id: int) -> dict[str, Any] | None:
        async with self._lock:
            saved = self._prices.get(plan_id, {}).get(product_id)
            return dict(saved) if saved is not None else None
