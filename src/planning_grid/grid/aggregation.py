"""Row, column and grand totals for a grid.

Sums are carried in :class:`~decimal.Decimal` without intermediate rounding,
so the per-row, per-column and grand amounts agree exactly. Rounding is a
display concern handled by :func:`display_amount`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal

from planning_grid.grid.model import GridModel
from planning_grid.grid.sanitizer import exact_context, to_number
from planning_grid.models.grid import Cell, LineItem, Period, PriceRecord
from planning_grid.models.snapshot import ZERO, AggregateSnapshot, Totals

PLACEHOLDER = "-"


def aggregate(
    items: Sequence[LineItem],
    periods: Sequence[Period],
    cells: Mapping[str, Mapping[str, Cell]],
    prices: Mapping[str, PriceRecord],
) -> AggregateSnapshot:
    """Compute totals for explicit grid state and prices.

    Walks items then periods in the given order; missing cells count as
    blank and missing prices as zero.
    """

    with exact_context():
        return _aggregate(items, periods, cells, prices)


def _aggregate(
    items: Sequence[LineItem],
    periods: Sequence[Period],
    cells: Mapping[str, Mapping[str, Cell]],
    prices: Mapping[str, PriceRecord],
) -> AggregateSnapshot:
    column_qty = {p.key: ZERO for p in periods}
    column_amount = {p.key: ZERO for p in periods}
    column_cost = {p.key: ZERO for p in periods}
    column_any = {p.key: False for p in periods}
    rows: dict[str, Totals] = {}
    grand_qty = grand_amount = grand_cost = ZERO
    grand_any = False

    for item in items:
        price = prices.get(item.id) or PriceRecord()
        sell = to_number(price.sell_price)
        buy = to_number(price.buy_price)
        row_cells = cells.get(item.id, {})
        row_qty = row_amount = row_cost = ZERO
        row_any = False
        for period in periods:
            cell = row_cells.get(period.key)
            raw = cell.raw_text if cell is not None else ""
            if raw != "":
                row_any = True
                column_any[period.key] = True
            qty = to_number(raw)
            amount = qty * sell
            cost = qty * buy
            row_qty += qty
            row_amount += amount
            row_cost += cost
            column_qty[period.key] += qty
            column_amount[period.key] += amount
            column_cost[period.key] += cost
        rows[item.id] = Totals(qty=row_qty, amount=row_amount, cost=row_cost, any=row_any)
        grand_qty += row_qty
        grand_amount += row_amount
        grand_cost += row_cost
        grand_any = grand_any or row_any

    columns = {
        p.key: Totals(
            qty=column_qty[p.key],
            amount=column_amount[p.key],
            cost=column_cost[p.key],
            any=column_any[p.key],
        )
        for p in periods
    }
    return AggregateSnapshot(
        rows=rows,
        columns=columns,
        grand=Totals(qty=grand_qty, amount=grand_amount, cost=grand_cost, any=grand_any),
    )


def compute_snapshot(grid: GridModel) -> AggregateSnapshot:
    """Aggregate the current state of ``grid``."""

    return aggregate(
        grid.items,
        grid.periods,
        {item.id: grid.row_cells(item.id) for item in grid.items},
        {item.id: grid.price(item.id) for item in grid.items},
    )


def round_money(value: Decimal, places: int = 2) -> Decimal:
    """Round half-up to ``places`` decimals; used only when rendering."""

    with exact_context():
        return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def display_amount(totals: Totals, places: int = 2) -> str:
    """Format an amount with thousands separators, or the placeholder."""

    if not totals.any:
        return PLACEHOLDER
    return f"{round_money(totals.amount, places):,.{places}f}"


def display_qty(totals: Totals) -> str:
    """Format a quantity verbatim with thousands separators, or the placeholder."""

    if not totals.any:
        return PLACEHOLDER
    with exact_context():
        qty = totals.qty.normalize() if totals.qty else ZERO
    return f"{qty:,f}"
