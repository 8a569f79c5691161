from __future__ import annotations

"""Tests for the Excel export of a grid with totals."""

from pathlib import Path

from openpyxl import load_workbook

from planning_grid.grid.model import GridModel
from planning_grid.grid.periods import fiscal_periods
from planning_grid.integrations.excel_export import export_grid
from planning_grid.models.grid import LineItem


def test_export_writes_quantities_prices_and_totals(tmp_path: Path) -> None:
    """One row per item plus a bold totals row; blanks stay empty."""

    grid = GridModel(fiscal_periods(), [LineItem(id="a", name="Rice", unit="ton"), LineItem(id="b", name="Seed", unit="kg")])
    grid.set_price("a", "sell_price", "10")
    grid.set_price("a", "buy_price", "7.5")
    grid.set_cell("a", "m04", "3")
    grid.set_cell("b", "m05", "2")

    out = export_grid(grid, tmp_path / "nested" / "plan.xlsx", title="procurement")
    assert out.exists()

    ws = load_workbook(out)["procurement"]
    header = [cell.value for cell in ws[1]]
    assert header[:5] == ["Item", "Unit", "Sell price", "Buy price", "เม.ย."]
    assert header[-3:] == ["Total qty", "Amount", "Cost"]

    rice = [cell.value for cell in ws[2]]
    assert rice[0] == "Rice"
    assert rice[2] == 10
    assert rice[4] == 3
    assert rice[5] is None
    assert rice[-3:] == [3, 30, 22.5]

    seed = [cell.value for cell in ws[3]]
    assert seed[2] is None
    assert seed[-2:] == [0, 0]

    total = [cell.value for cell in ws[4]]
    assert total[0] == "Total"
    assert total[4] == 3
    assert total[5] == 2
    assert total[-3:] == [5, 30, 22.5]
    assert ws["A4"].font.bold is True
