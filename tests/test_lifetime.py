from __future__ import annotations

"""Tests for cancelling in-flight work when a grid is torn down."""

import asyncio

import pytest

from planning_grid.services.lifetime import CancellationScope


def test_run_returns_result() -> None:
    """Work finishing normally passes its result through."""

    async def _work() -> int:
        await asyncio.sleep(0)
        return 7

    scope = CancellationScope()
    assert asyncio.run(scope.run(_work())) == 7
    assert scope.in_flight == 0


def test_aclose_cancels_in_flight_requests() -> None:
    """Closing the scope cancels pending work and refuses new work."""

    async def _run() -> tuple[bool, bool]:
        scope = CancellationScope()
        started = asyncio.Event()

        async def _slow() -> None:
            started.set()
            await asyncio.sleep(10)

        waiter = asyncio.create_task(scope.run(_slow()))
        await started.wait()
        assert scope.in_flight == 1
        await scope.aclose()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        refused = False
        try:
            await scope.run(_slow())
        except asyncio.CancelledError:
            refused = True
        return scope.closed, refused

    closed, refused = asyncio.run(_run())
    assert closed is True
    assert refused is True
