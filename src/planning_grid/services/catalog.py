from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from planning_grid.models.grid import CatalogItem, LineItem, RemoteCellRecord, Unit
from planning_grid.services.ports import Transport

logger = logging.getLogger(__name__)


def normalize_units(data: Any) -> list[Unit]:
    """Turn a unit search response into units with positive ids."""

    rows = data if isinstance(data, list) else []
    units: list[Unit] = []
    for idx, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            continue
        try:
            unit_id = int(row.get("id") or 0)
        except (TypeError, ValueError):
            continue
        if unit_id <= 0:
            continue
        name = row.get("unit_name") or row.get("klang_name") or row.get("unit") or row.get("name") or f"unit {idx}"
        units.append(Unit(id=unit_id, name=str(name).strip()))
    return units


def default_unit_id(units: list[Unit]) -> int | None:
    """First unit of the branch; saves are filed under it."""

    return units[0].id if units else None


def normalize_catalog(data: Any, business_group: int | None) -> list[CatalogItem]:
    """Pick the items of one business group from a products-by-group response."""

    if not isinstance(data, dict):
        return []
    if business_group is None:
        groups = list(data.values())
    else:
        group = data.get(str(business_group))
        groups = [group] if group else []
    items: list[CatalogItem] = []
    for group in groups:
        raw_items = group.get("items") if isinstance(group, dict) else None
        for raw in raw_items or []:
            if not isinstance(raw, dict):
                continue
            try:
                entry = CatalogItem.model_validate(raw)
            except ValidationError as exc:
                logger.warning("skipping malformed catalog row %s: %s", raw.get("product_id"), exc)
                continue
            if business_group is not None and entry.business_group not in (None, business_group):
                continue
            items.append(entry)
    return items


def catalog_line_items(entries: list[CatalogItem], *, default_unit: str = "") -> list[LineItem]:
    """Line items for catalog entries; entries without product id stay unresolved."""

    items: list[LineItem] = []
    seen: set[str] = set()
    for idx, entry in enumerate(entries):
        item_id = f"p_{entry.product_id}" if entry.product_id else f"row_{idx}"
        if item_id in seen:
            continue
        seen.add(item_id)
        items.append(
            LineItem(
                id=item_id,
                name=entry.name.strip(),
                unit=(entry.unit or default_unit).strip(),
                external_id=entry.product_id or None,
            )
        )
    return items


def normalize_cell_records(data: Any) -> list[RemoteCellRecord]:
    """Parse saved cells from ``{cells: [...]}`` or a bare list."""

    rows = data.get("cells") if isinstance(data, dict) else data
    records: list[RemoteCellRecord] = []
    for raw in rows if isinstance(rows, list) else []:
        try:
            records.append(RemoteCellRecord.model_validate(raw))
        except ValidationError:
            logger.debug("ignoring malformed saved cell %r", raw)
    return records


class CatalogService:
    """Identifier lookups shared by grid pages: units and product catalog."""

    def __init__(self, transport: Transport, *, units_path: str, catalog_path: str | None) -> None:
        self.transport = transport
        self.units_path = units_path
        self.catalog_path = catalog_path

    async def fetch_units(self, branch_id: int) -> list[Unit]:
        data = await self.transport.request("GET", self.units_path, params={"branch_id": branch_id})
        return normalize_units(data)

    async def fetch_catalog(self, plan_id: int, business_group: int | None) -> list[CatalogItem]:
        if not self.catalog_path:
            return []
        data = await self.transport.request("GET", self.catalog_path, params={"plan_id": plan_id})
        return normalize_catalog(data, business_group)
