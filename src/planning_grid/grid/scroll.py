from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Generic, TypeVar

from planning_grid.services.ports import FrameScheduler

T = TypeVar("T")

FRAME_INTERVAL_SEC = 1 / 60


class AsyncioFrameScheduler:
    """Frame scheduler backed by the running event loop (about 60 Hz)."""

    def __init__(self, interval_sec: float = FRAME_INTERVAL_SEC) -> None:
        self.interval_sec = interval_sec

    def request_frame(self, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(self.interval_sec, callback)

    def cancel_frame(self, handle: object) -> None:
        if isinstance(handle, asyncio.TimerHandle):
            handle.cancel()


class ManualFrameScheduler:
    """Frame scheduler driven explicitly; for headless hosts and tests."""

    def __init__(self) -> None:
        self._pending: dict[int, Callable[[], None]] = {}
        self._next_id = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def request_frame(self, callback: Callable[[], None]) -> int:
        self._next_id += 1
        self._pending[self._next_id] = callback
        return self._next_id

    def cancel_frame(self, handle: object) -> None:
        self._pending.pop(handle, None)  # type: ignore[arg-type]

    def tick(self) -> int:
        """Run every callback queued before this call; returns how many ran."""

        callbacks = list(self._pending.values())
        self._pending.clear()
        for callback in callbacks:
            callback()
        return len(callbacks)


class FrameThrottle(Generic[T]):
    """Coalesce bursts of values into at most one delivery per frame.

    Only the latest value submitted before the frame fires is delivered.
    """

    def __init__(self, scheduler: FrameScheduler, deliver: Callable[[T], None]) -> None:
        self._scheduler = scheduler
        self._deliver = deliver
        self._handle: object | None = None
        self._latest: T | None = None
        self._has_value = False

    @property
    def scheduled(self) -> bool:
        return self._handle is not None

    def submit(self, value: T) -> None:
        self._latest = value
        self._has_value = True
        if self._handle is None:
            self._handle = self._scheduler.request_frame(self._flush)

    def cancel(self) -> None:
        if self._handle is not None:
            self._scheduler.cancel_frame(self._handle)
        self._handle = None
        self._has_value = False

    def _flush(self) -> None:
        self._handle = None
        if not self._has_value:
            return
        value = self._latest
        self._has_value = False
        self._deliver(value)  # type: ignore[arg-type]


class ScrollSynchronizer:
    """Observable horizontal offset of the grid body.

    The body reports raw scroll events through :meth:`on_body_scroll`;
    subscribers (frozen header, totals footer) receive the offset at most
    once per frame and only when it changed.
    """

    def __init__(self, scheduler: FrameScheduler, *, initial: float = 0.0) -> None:
        self._offset = float(initial)
        self._subscribers: list[Callable[[float], None]] = []
        self._throttle: FrameThrottle[float] = FrameThrottle(scheduler, self._publish)

    @property
    def offset(self) -> float:
        return self._offset

    def subscribe(self, callback: Callable[[float], None]) -> Callable[[], None]:
        """Register a follower; it is told the current offset immediately."""

        self._subscribers.append(callback)
        callback(self._offset)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def on_body_scroll(self, scroll_left: float) -> None:
        self._throttle.submit(max(float(scroll_left or 0.0), 0.0))

    def close(self) -> None:
        self._throttle.cancel()
        self._subscribers.clear()

    def _publish(self, offset: float) -> None:
        if offset == self._offset:
            return
        self._offset = offset
        for callback in list(self._subscribers):
            callback(offset)


def fit_height(
    viewport_height: float,
    top: float,
    *,
    min_height: float = 700,
    bottom_padding: float = 4,
) -> int:
    """Height that lets a grid card fill the viewport below ``top``."""

    return int(max(min_height, viewport_height - top - bottom_padding))
