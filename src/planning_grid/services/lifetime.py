from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


class CancellationScope:
    """Owns the network tasks of one grid instance.

    Every awaited network operation runs as a task registered here;
    :meth:`cancel` stops them all and refuses new work afterwards.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_flight(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` as a task that :meth:`cancel` can stop."""

        if self._closed:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise asyncio.CancelledError("grid instance was closed")
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return await task

    def cancel(self) -> None:
        self._closed = True
        for task in list(self._tasks):
            task.cancel()

    async def aclose(self) -> None:
        """Cancel and wait until every task has finished unwinding."""

        tasks = list(self._tasks)
        self.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
