from __future__ import annotations

from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font

from planning_grid.grid.aggregation import compute_snapshot, round_money
from planning_grid.grid.model import GridModel
from planning_grid.grid.sanitizer import to_number

MONEY_FORMAT = "#,##0.00"
QTY_FORMAT = "#,##0.###"


def _qty_value(raw_text: str) -> float | None:
    """Blank stays blank in the sheet; typed text becomes a number."""

    if raw_text == "":
        return None
    return float(to_number(raw_text))


def export_grid(grid: GridModel, out_path: Path, *, title: str = "Plan") -> Path:
    """Write quantities, prices and totals of ``grid`` to one worksheet."""

    snapshot = compute_snapshot(grid)
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31] or "Plan"

    headers = ["Item", "Unit", "Sell price", "Buy price"]
    headers += [p.label for p in grid.periods]
    headers += ["Total qty", "Amount", "Cost"]
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)

    first_period_col = 5
    qty_cols = range(first_period_col, first_period_col + len(grid.periods) + 1)
    for item in grid.items:
        price = grid.price(item.id)
        totals = snapshot.row(item.id)
        row = [
            item.name,
            item.unit,
            float(to_number(price.sell_price)) if price.sell_price else None,
            float(to_number(price.buy_price)) if price.buy_price else None,
        ]
        row += [_qty_value(grid.cell(item.id, p.key).raw_text) for p in grid.periods]
        row += [
            float(totals.qty) if totals.any else None,
            float(round_money(totals.amount)) if totals.any else None,
            float(round_money(totals.cost)) if totals.any else None,
        ]
        ws.append(row)

    footer = ["Total", "", None, None]
    footer += [float(snapshot.column(p.key).qty) if snapshot.column(p.key).any else None for p in grid.periods]
    footer += [
        float(snapshot.grand.qty) if snapshot.grand.any else None,
        float(round_money(snapshot.grand.amount)) if snapshot.grand.any else None,
        float(round_money(snapshot.grand.cost)) if snapshot.grand.any else None,
    ]
    ws.append(footer)
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True)

    for row in ws.iter_rows(min_row=2, max_row=ws.max_row):
        for cell in row:
            if cell.column in (3, 4) or cell.column > first_period_col + len(grid.periods):
                cell.number_format = MONEY_FORMAT
            elif cell.column in qty_cols:
                cell.number_format = QTY_FORMAT
    ws.column_dimensions["A"].width = 28
    ws.freeze_panes = "C2"

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(out_path)
    return out_path
