"""Fire-and-forget scheduling of remote round trips on the running loop."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any


class BackgroundTasks:
    """Default ``TaskRunner``: schedules coroutines as asyncio tasks.

    Keeps a reference to every pending task so none is garbage collected
    mid-flight, and lets callers wait until the session is idle.

    Usage:
        tasks = BackgroundTasks()
        tasks(fetch_page(), "fetch-page")
        await tasks.drain()
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def __call__(self, work: Coroutine[Any, Any, None], name: str) -> asyncio.Task[Any]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            work.close()
            raise RuntimeError(f"Cannot schedule {name!r}: no running event loop") from None
        task = loop.create_task(work, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until no task is pending, including tasks spawned meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
