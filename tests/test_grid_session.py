from __future__ import annotations

"""Tests for a whole grid page wired from a preset."""

import asyncio

import pytest

from planning_grid.errors import ConfigurationGapError
from planning_grid.grid.scroll import ManualFrameScheduler
from planning_grid.models.internal import SaveContext
from planning_grid.services.grid_session import GridSession
from planning_grid.services.presets import preset_names, sale_goal_grid

from test_persistence import _ScriptedLedger


def _session(ledger: _ScriptedLedger, preset: str = "procurement") -> GridSession:
    context = SaveContext.resolve(branch_id=1, year=2569)
    return GridSession(sale_goal_grid(preset), ledger, context, scheduler=ManualFrameScheduler())


def test_presets_are_valid_grids() -> None:
    """Every preset builds a twelve period config for its business group."""

    groups = {}
    for name in preset_names():
        config = sale_goal_grid(name)
        assert len(config.periods) == 12
        groups[name] = config.business_group
    assert groups == {"procurement": 1, "collection": 3, "processing": 4, "seed": 5}
    with pytest.raises(KeyError):
        sale_goal_grid("payroll")


def test_editing_is_disabled_until_context_is_complete() -> None:
    """Before the default unit is known every edit is refused."""

    session = _session(_ScriptedLedger())
    assert session.editable is False
    with pytest.raises(ConfigurationGapError) as exc:
        session.set_cell("p_101", "m04", "1")
    assert exc.value.missing == ["default_unit_id"]


def test_open_edit_save_close() -> None:
    """Load, edit through navigator coordinates, save, then tear down."""

    async def _run():
        ledger = _ScriptedLedger()
        session = _session(ledger)
        assert await session.open() is None
        assert session.editable is True
        assert session.navigator.rows == 3
        assert session.navigator.last_col == 12

        session.edit(0, 0, "11")
        session.edit(0, 1, "2")
        session.edit(1, 12, "4")
        snapshot = session.snapshot()
        outcome = await session.save()
        await session.close()
        return ledger, session, snapshot, outcome

    ledger, session, snapshot, outcome = asyncio.run(_run())
    assert snapshot.row("p_101").amount == 22
    assert snapshot.grand.qty == 6
    assert outcome.ok is True
    assert session.notice == outcome.notice
    assert sorted((c["product_id"], c["month"]) for c in ledger.cells) == [(101, 4), (102, 3)]
    read = [call for call in ledger.calls if call[1] == "/revenue/sale-goals"]
    assert read[0][2] == {"year": 2569, "branch_id": 1}
    assert session.scope.closed is True


def test_coordinate_bounds() -> None:
    """Navigator coordinates outside the grid are rejected."""

    async def _open() -> GridSession:
        session = _session(_ScriptedLedger())
        await session.open()
        return session

    session = asyncio.run(_open())
    assert session.coordinate(2, 0) == ("row_2", None)
    with pytest.raises(IndexError):
        session.coordinate(3, 0)
    with pytest.raises(IndexError):
        session.coordinate(0, 13)
