from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from planning_grid.grid.sanitizer import format_quantity, sanitize
from planning_grid.models.grid import (
    CatalogItem,
    Cell,
    IdentifierGap,
    LineItem,
    LoadResult,
    Period,
    PriceRecord,
    RemoteCellRecord,
)

logger = logging.getLogger(__name__)

PRICE_FIELDS = ("sell_price", "buy_price", "note")
NUMERIC_PRICE_FIELDS = ("sell_price", "buy_price")

_BLANK = Cell()


class GridModel:
    """Entity x period quantity store with per-item prices.

    The period axis is fixed at construction. Line items may be replaced as a
    whole (catalog reload) but ids stay unique. All text entering the grid goes
    through :func:`sanitize`.
    """

    def __init__(
        self,
        periods: Sequence[Period],
        items: Sequence[LineItem] = (),
        *,
        max_decimals: int | None = None,
    ) -> None:
        """Create an all-blank grid for the given axes."""

        self._periods: tuple[Period, ...] = tuple(periods)
        self._period_by_key = {p.key: p for p in self._periods}
        self._period_by_month = {p.calendar_month: p for p in self._periods}
        if len(self._period_by_key) != len(self._periods):
            raise ValueError("period keys must be unique")
        self.max_decimals = max_decimals
        self.default_unit_id: int | None = None
        self._items: tuple[LineItem, ...] = ()
        self._item_by_id: dict[str, LineItem] = {}
        self._cells: dict[str, dict[str, Cell]] = {}
        self._prices: dict[str, PriceRecord] = {}
        self.replace_items(items)

    # ------------------------------------------------------------------ axes

    @property
    def periods(self) -> tuple[Period, ...]:
        return self._periods

    @property
    def items(self) -> tuple[LineItem, ...]:
        return self._items

    @property
    def editable_items(self) -> tuple[LineItem, ...]:
        return tuple(item for item in self._items if item.editable)

    @property
    def dimensions(self) -> tuple[int, int]:
        """(editable row count, period count) used by the navigator."""

        return len(self.editable_items), len(self._periods)

    def item(self, item_id: str) -> LineItem:
        return self._item_by_id[item_id]

    def period(self, period_key: str) -> Period:
        return self._period_by_key[period_key]

    def replace_items(self, items: Iterable[LineItem]) -> None:
        """Swap the line item table, keeping values of ids that survive."""

        new_items = tuple(items)
        ids = [item.id for item in new_items]
        if len(set(ids)) != len(ids):
            raise ValueError("line item ids must be unique")
        old_cells = self._cells
        old_prices = self._prices
        self._items = new_items
        self._item_by_id = {item.id: item for item in new_items}
        self._cells = {}
        self._prices = {}
        for item in new_items:
            row = old_cells.get(item.id, {})
            self._cells[item.id] = {p.key: row.get(p.key, _BLANK) for p in self._periods}
            self._prices[item.id] = old_prices.get(item.id, PriceRecord())

    # ----------------------------------------------------------------- cells

    def cell(self, item_id: str, period_key: str) -> Cell:
        return self._row(item_id)[self._check_period(period_key)]

    def row_cells(self, item_id: str) -> dict[str, Cell]:
        return dict(self._row(item_id))

    def set_cell(self, item_id: str, period_key: str, text: object) -> Cell:
        """Sanitize ``text`` and store it at (item, period)."""

        item = self.item(item_id)
        if not item.editable:
            raise ValueError(f"line item {item_id!r} is not editable")
        key = self._check_period(period_key)
        cell = Cell(raw_text=sanitize(text, self.max_decimals))
        self._cells[item_id][key] = cell
        return cell

    # ---------------------------------------------------------------- prices

    def price(self, item_id: str) -> PriceRecord:
        self.item(item_id)
        return self._prices[item_id]

    def set_price(self, item_id: str, field: str, text: object) -> PriceRecord:
        """Update one price field; numeric fields go through the sanitizer."""

        if field not in PRICE_FIELDS:
            raise ValueError(f"unknown price field {field!r}; expected one of {', '.join(PRICE_FIELDS)}")
        current = self.price(item_id)
        if field in NUMERIC_PRICE_FIELDS:
            value = sanitize(text, self.max_decimals)
        else:
            value = "" if text is None else str(text).strip()
        updated = current.model_copy(update={field: value})
        self._prices[item_id] = updated
        return updated

    def load_prices(self, catalog: Iterable[CatalogItem]) -> int:
        """Seed prices from catalog rows matched by external id."""

        by_external = self._items_by_external_id()
        applied = 0
        for entry in catalog:
            item = by_external.get(entry.product_id) if entry.product_id is not None else None
            if item is None:
                continue
            self._prices[item.id] = PriceRecord(
                sell_price="" if entry.sell_price is None else sanitize(format_quantity(entry.sell_price)),
                buy_price="" if entry.buy_price is None else sanitize(format_quantity(entry.buy_price)),
                note=(entry.comment or "").strip(),
            )
            applied += 1
        return applied

    # -------------------------------------------------------------- lifecycle

    def reset(self, preserve_prices: bool = True) -> None:
        """Blank every quantity cell; prices survive unless told otherwise."""

        for item in self._items:
            self._cells[item.id] = {p.key: _BLANK for p in self._periods}
            if not preserve_prices:
                self._prices[item.id] = PriceRecord()

    def load_from_records(self, records: Iterable[RemoteCellRecord], *, merge: bool = False) -> LoadResult:
        """Apply remote (external id, month, amount) records to the grid.

        Without ``merge`` every quantity is blanked first so cells missing
        from the response end up blank rather than stale. Records whose
        external id, month or unit do not match are discarded.
        """

        if not merge:
            self.reset(preserve_prices=True)
        by_external = self._items_by_external_id()
        result = LoadResult()
        for record in records:
            item = by_external.get(record.item_external_id)
            period = self._period_by_month.get(record.month)
            unit_mismatch = (
                self.default_unit_id is not None
                and record.unit_id is not None
                and record.unit_id != self.default_unit_id
            )
            if item is None or period is None or unit_mismatch or record.amount < 0:
                result.discarded += 1
                continue
            self._cells[item.id][period.key] = Cell(raw_text=sanitize(format_quantity(record.amount), self.max_decimals))
            result.applied += 1
        if result.discarded:
            logger.debug("discarded %d unmatched remote records", result.discarded)
        return result

    def identifier_gaps(self) -> list[IdentifierGap]:
        """Items without a backend id; they are shown but never saved."""

        gaps = []
        for item in self._items:
            if item.external_id is not None:
                continue
            has_values = any(not c.is_blank for c in self._cells[item.id].values())
            gaps.append(IdentifierGap(item_id=item.id, name=item.name, has_values=has_values))
        return gaps

    # --------------------------------------------------------------- helpers

    def _row(self, item_id: str) -> dict[str, Cell]:
        self.item(item_id)
        return self._cells[item_id]

    def _check_period(self, period_key: str) -> str:
        self.period(period_key)
        return period_key

    def _items_by_external_id(self) -> dict[int, LineItem]:
        return {item.external_id: item for item in self._items if item.external_id is not None}
