from __future__ import annotations

"""Tests for row, column and grand totals."""

from decimal import Decimal

from planning_grid.grid.aggregation import aggregate, compute_snapshot, display_amount, display_qty, round_money
from planning_grid.grid.model import GridModel
from planning_grid.grid.periods import fiscal_periods
from planning_grid.grid.sanitizer import exact_context
from planning_grid.models.grid import Cell, LineItem, Period, PriceRecord
from planning_grid.models.snapshot import Totals


def _two_by_two():
    """Items A (price 10) and B (price 5) over periods m1 and m2."""

    items = [LineItem(id="A", name="A"), LineItem(id="B", name="B")]
    periods = [Period(key="m1", label="m1", calendar_month=1), Period(key="m2", label="m2", calendar_month=2)]
    cells = {
        "A": {"m1": Cell(raw_text="3"), "m2": Cell(raw_text="")},
        "B": {"m1": Cell(raw_text="2"), "m2": Cell(raw_text="4")},
    }
    prices = {"A": PriceRecord(sell_price="10"), "B": PriceRecord(sell_price="5")}
    return items, periods, cells, prices


def test_worked_example_totals() -> None:
    """Row, column and grand totals of the two by two example."""

    snapshot = aggregate(*_two_by_two())
    assert snapshot.row("A").qty == 3
    assert snapshot.row("A").amount == 30
    assert snapshot.row("B").qty == 6
    assert snapshot.row("B").amount == 30
    assert snapshot.column("m1").qty == 5
    assert snapshot.column("m1").amount == 40
    assert snapshot.column("m2").qty == 4
    assert snapshot.column("m2").amount == 20
    assert snapshot.grand.qty == 9
    assert snapshot.grand.amount == 60


def test_totals_agree_exactly_with_fractional_prices() -> None:
    """Row sums, column sums and the grand total match to the last digit."""

    grid = GridModel(fiscal_periods(), [LineItem(id=f"i{n}", name=str(n)) for n in range(5)])
    for n, item in enumerate(grid.items):
        grid.set_price(item.id, "sell_price", f"{n}.333")
        grid.set_price(item.id, "buy_price", "0.1")
        for m, period in enumerate(grid.periods):
            grid.set_cell(item.id, period.key, f"{m}.7")
    snapshot = compute_snapshot(grid)
    by_rows = sum((snapshot.row(i.id).amount for i in grid.items), Decimal("0"))
    by_cols = sum((snapshot.column(p.key).amount for p in grid.periods), Decimal("0"))
    assert by_rows == by_cols == snapshot.grand.amount
    cost_rows = sum((snapshot.row(i.id).cost for i in grid.items), Decimal("0"))
    assert cost_rows == snapshot.grand.cost


def test_totals_stay_exact_past_default_decimal_precision() -> None:
    """A 29-digit quantity next to small ones does not round any total."""

    grid = GridModel(fiscal_periods(), [LineItem(id="A", name="A"), LineItem(id="B", name="B")])
    first, second = grid.periods[0].key, grid.periods[1].key
    grid.set_price("A", "sell_price", "1")
    grid.set_price("B", "sell_price", "1")
    grid.set_cell("A", first, "1" + "0" * 28)
    grid.set_cell("A", second, "6")
    grid.set_cell("B", second, "6")
    snapshot = compute_snapshot(grid)
    assert snapshot.row("A").amount == Decimal("1" + "0" * 27 + "6")
    assert snapshot.column(second).amount == 12
    assert snapshot.grand.amount == Decimal("1" + "0" * 26 + "12")
    with exact_context():
        by_rows = sum((snapshot.row(i.id).amount for i in grid.items), Decimal("0"))
        by_cols = sum((snapshot.column(p.key).amount for p in grid.periods), Decimal("0"))
    assert by_rows == by_cols == snapshot.grand.amount


def test_long_quantity_renders_without_error() -> None:
    """A 21-digit quantity times a large price still formats for display."""

    grid = GridModel(fiscal_periods(), [LineItem(id="A", name="A")])
    grid.set_price("A", "sell_price", "1000000")
    grid.set_cell("A", grid.periods[0].key, "1" + "0" * 20)
    snapshot = compute_snapshot(grid)
    assert display_amount(snapshot.grand) == "100," + ",".join(["000"] * 8) + ".00"
    assert display_qty(snapshot.grand) == "100," + ",".join(["000"] * 6)
    assert round_money(Decimal("1" + "0" * 30 + ".005")) == Decimal("1" + "0" * 30 + ".01")


def test_blank_scopes_show_placeholder() -> None:
    """A scope with no typed text renders as a dash; typed zero renders as 0."""

    snapshot = aggregate(*_two_by_two())
    assert display_amount(snapshot.column("m2")) == "20.00"
    assert display_amount(Totals()) == "-"
    assert display_qty(Totals()) == "-"
    assert display_qty(Totals(qty=Decimal("0"), any=True)) == "0"


def test_display_rounds_half_up_with_separators() -> None:
    """Rounding happens only when rendering."""

    assert round_money(Decimal("2.345")) == Decimal("2.35")
    assert display_amount(Totals(amount=Decimal("1234567.005"), any=True)) == "1,234,567.01"
    assert display_qty(Totals(qty=Decimal("1500.50"), any=True)) == "1,500.5"


def test_missing_price_counts_as_zero() -> None:
    """Quantities without a price add to qty but not to amount."""

    items = [LineItem(id="A", name="A")]
    periods = [Period(key="m1", label="m1", calendar_month=1)]
    snapshot = aggregate(items, periods, {"A": {"m1": Cell(raw_text="4")}}, {})
    assert snapshot.grand.qty == 4
    assert snapshot.grand.amount == 0
    assert snapshot.grand.any is True
