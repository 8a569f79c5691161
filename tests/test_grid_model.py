from __future__ import annotations

"""Tests for the grid model: edits, prices, remote loads and item swaps."""

from decimal import Decimal

import pytest

from planning_grid.grid.model import GridModel
from planning_grid.grid.periods import fiscal_periods
from planning_grid.models.grid import CatalogItem, GridConfig, LineItem, RemoteCellRecord


def _items() -> list[LineItem]:
    """Two mapped items and one without a backend id."""

    return [
        LineItem(id="p_101", name="Rice", unit="ton", external_id=101),
        LineItem(id="p_102", name="Fertilizer", unit="bag", external_id=102),
        LineItem(id="row_2", name="Misc", external_id=None),
    ]


def _grid(max_decimals: int | None = None) -> GridModel:
    return GridModel(fiscal_periods(), _items(), max_decimals=max_decimals)


def test_new_grid_is_blank() -> None:
    """Every cell starts as blank text and zero value."""

    grid = _grid()
    assert grid.dimensions == (3, 12)
    cell = grid.cell("p_101", "m04")
    assert cell.is_blank
    assert cell.numeric_value == 0
    assert grid.price("p_101").sell_price == ""


def test_set_cell_sanitizes_text() -> None:
    """Typed text is stored sanitized; max_decimals applies."""

    grid = _grid(max_decimals=2)
    cell = grid.set_cell("p_101", "m05", "1,2a.345")
    assert cell.raw_text == "12.34"
    assert grid.cell("p_101", "m05").numeric_value == Decimal("12.34")


def test_set_cell_unknown_coordinates_raise() -> None:
    """Unknown item or period is a programming error."""

    grid = _grid()
    with pytest.raises(KeyError):
        grid.set_cell("nope", "m04", "1")
    with pytest.raises(KeyError):
        grid.set_cell("p_101", "m13", "1")


def test_read_only_item_rejects_edits() -> None:
    """Items flagged not editable stay out of the navigator and reject writes."""

    grid = GridModel(fiscal_periods(), [LineItem(id="fixed", name="Fixed", editable=False)])
    assert grid.dimensions == (0, 12)
    with pytest.raises(ValueError):
        grid.set_cell("fixed", "m04", "1")


def test_set_price_sanitizes_numbers_and_keeps_note_text() -> None:
    """Numeric price fields are sanitized, the note is free text."""

    grid = _grid()
    grid.set_price("p_101", "sell_price", "฿1,250.5")
    grid.set_price("p_101", "note", "  contract price ")
    price = grid.price("p_101")
    assert price.sell_price == "1250.5"
    assert price.note == "contract price"
    with pytest.raises(ValueError):
        grid.set_price("p_101", "discount", "1")


def test_load_from_records_replaces_previous_values() -> None:
    """Cells absent from the response end up blank, not stale."""

    grid = _grid()
    grid.set_cell("p_102", "m06", "9")
    records = [
        RemoteCellRecord.model_validate({"product_id": 101, "month": 4, "amount": 12.5}),
        RemoteCellRecord.model_validate({"business_earning_id": 102, "month": 1, "value": "3"}),
    ]
    result = grid.load_from_records(records)
    assert result.applied == 2
    assert result.discarded == 0
    assert grid.cell("p_101", "m04").raw_text == "12.5"
    assert grid.cell("p_102", "m01").raw_text == "3"
    assert grid.cell("p_102", "m06").is_blank


def test_load_from_records_discards_unmatched() -> None:
    """Unknown ids, bad months, other units and negative amounts are skipped."""

    grid = _grid()
    grid.default_unit_id = 11
    records = [
        RemoteCellRecord.model_validate({"product_id": 999, "month": 4, "amount": 1}),
        RemoteCellRecord.model_validate({"product_id": 101, "month": 13, "amount": 1}),
        RemoteCellRecord.model_validate({"product_id": 101, "month": 4, "amount": 1, "unit_id": 12}),
        RemoteCellRecord.model_validate({"product_id": 101, "month": 5, "amount": -2}),
        RemoteCellRecord.model_validate({"product_id": 101, "month": 6, "amount": 7, "unit_id": 11}),
    ]
    result = grid.load_from_records(records)
    assert result.applied == 1
    assert result.discarded == 4
    assert grid.cell("p_101", "m06").raw_text == "7"
    assert grid.cell("p_101", "m04").is_blank


def test_load_from_records_merge_keeps_existing() -> None:
    """Merging leaves cells untouched when the response omits them."""

    grid = _grid()
    grid.set_cell("p_102", "m06", "9")
    grid.load_from_records([RemoteCellRecord(item_external_id=101, month=4, amount=Decimal("2"))], merge=True)
    assert grid.cell("p_102", "m06").raw_text == "9"
    assert grid.cell("p_101", "m04").raw_text == "2"


def test_null_remote_amount_counts_as_zero() -> None:
    """A null amount loads as the text ``0``."""

    grid = _grid()
    grid.load_from_records([RemoteCellRecord.model_validate({"product_id": 101, "month": 4, "amount": None})])
    assert grid.cell("p_101", "m04").raw_text == "0"


def test_reset_blanks_cells_and_optionally_prices() -> None:
    """Reset clears quantities; prices only when asked."""

    grid = _grid()
    grid.set_cell("p_101", "m04", "5")
    grid.set_price("p_101", "sell_price", "10")
    grid.reset()
    assert grid.cell("p_101", "m04").is_blank
    assert grid.price("p_101").sell_price == "10"
    grid.reset(preserve_prices=False)
    assert grid.price("p_101").sell_price == ""


def test_replace_items_keeps_surviving_values() -> None:
    """Catalog reload keeps values of items that are still present."""

    grid = _grid()
    grid.set_cell("p_101", "m04", "5")
    grid.set_cell("p_102", "m04", "6")
    grid.replace_items([LineItem(id="p_101", name="Rice", external_id=101), LineItem(id="p_103", name="Seed", external_id=103)])
    assert grid.cell("p_101", "m04").raw_text == "5"
    assert grid.cell("p_103", "m04").is_blank
    with pytest.raises(KeyError):
        grid.cell("p_102", "m04")
    with pytest.raises(ValueError):
        grid.replace_items([LineItem(id="x", name="a"), LineItem(id="x", name="b")])


def test_load_prices_matches_catalog_by_product_id() -> None:
    """Catalog prices land on the item with the same external id."""

    grid = _grid()
    catalog = [
        CatalogItem.model_validate({"product_id": 101, "product_type": "Rice", "sell_price": 18500, "buy_price": "15200.50", "comment": "q1"}),
        CatalogItem.model_validate({"product_id": 555, "product_type": "Other", "sell_price": 1}),
    ]
    assert grid.load_prices(catalog) == 1
    price = grid.price("p_101")
    assert price.sell_price == "18500"
    assert price.buy_price == "15200.5"
    assert price.note == "q1"


def test_identifier_gaps_report_unmapped_items() -> None:
    """Items without a backend id are listed with whether they hold values."""

    grid = _grid()
    grid.set_cell("row_2", "m04", "3")
    gaps = grid.identifier_gaps()
    assert [g.item_id for g in gaps] == ["row_2"]
    assert gaps[0].has_values is True


def test_grid_config_requires_twelve_unique_periods() -> None:
    """Config validation guards the period axis and item ids."""

    periods = fiscal_periods()
    GridConfig(name="ok", periods=periods)
    with pytest.raises(ValueError):
        GridConfig(name="short", periods=periods[:11])
    with pytest.raises(ValueError):
        GridConfig(name="dupe", periods=periods, items=(LineItem(id="a", name="a"), LineItem(id="a", name="b")))
