from __future__ import annotations

"""Tests for frame throttling and scroll offset propagation."""

import asyncio

from planning_grid.grid.scroll import AsyncioFrameScheduler, FrameThrottle, ManualFrameScheduler, ScrollSynchronizer, fit_height


def test_throttle_delivers_latest_value_once_per_frame() -> None:
    """A burst of submissions collapses into one delivery."""

    scheduler = ManualFrameScheduler()
    delivered: list[int] = []
    throttle: FrameThrottle[int] = FrameThrottle(scheduler, delivered.append)
    for value in (1, 2, 3):
        throttle.submit(value)
    assert scheduler.pending == 1
    scheduler.tick()
    assert delivered == [3]
    assert throttle.scheduled is False


def test_throttle_cancel_drops_pending_value() -> None:
    """Cancelled frames never deliver."""

    scheduler = ManualFrameScheduler()
    delivered: list[int] = []
    throttle: FrameThrottle[int] = FrameThrottle(scheduler, delivered.append)
    throttle.submit(5)
    throttle.cancel()
    assert scheduler.tick() == 0
    assert delivered == []


def test_synchronizer_notifies_followers_on_change_only() -> None:
    """Header and footer follow the body offset, once per frame."""

    scheduler = ManualFrameScheduler()
    sync = ScrollSynchronizer(scheduler)
    header: list[float] = []
    footer: list[float] = []
    sync.subscribe(header.append)
    unsubscribe = sync.subscribe(footer.append)
    assert header == [0.0]

    sync.on_body_scroll(40)
    sync.on_body_scroll(120)
    scheduler.tick()
    assert header == [0.0, 120.0]
    assert sync.offset == 120.0

    sync.on_body_scroll(120)
    scheduler.tick()
    assert header == [0.0, 120.0]

    unsubscribe()
    sync.on_body_scroll(-5)
    scheduler.tick()
    assert header[-1] == 0.0
    assert footer == [0.0, 120.0]


def test_close_detaches_everyone() -> None:
    """After close nothing is published."""

    scheduler = ManualFrameScheduler()
    sync = ScrollSynchronizer(scheduler)
    seen: list[float] = []
    sync.subscribe(seen.append)
    sync.on_body_scroll(10)
    sync.close()
    scheduler.tick()
    assert seen == [0.0]


def test_asyncio_scheduler_runs_on_event_loop() -> None:
    """The asyncio scheduler fires callbacks after a frame interval."""

    async def _run() -> list[float]:
        sync = ScrollSynchronizer(AsyncioFrameScheduler(interval_sec=0.001))
        seen: list[float] = []
        sync.subscribe(seen.append)
        sync.on_body_scroll(33)
        await asyncio.sleep(0.05)
        sync.close()
        return seen

    assert asyncio.run(_run()) == [0.0, 33.0]


def test_fit_height_has_minimum() -> None:
    """Card height fills the viewport but never drops below the minimum."""

    assert fit_height(1200, 150) == 1046
    assert fit_height(600, 150) == 700
