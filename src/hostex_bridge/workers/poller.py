"""Background task supervision and the per-login poll loop."""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Awaitable, Callable, Coroutine

from hostex_bridge.application.dto.reports import SyncReport, TaskFailure
from hostex_bridge.application.ports.clock import Clock, SystemClock

logger = logging.getLogger(__name__)


class TaskSupervisor:
    """Owns every background task and records the ones that fail.

    Failures are logged and kept in a bounded history instead of being
    dropped with the task.
    """

    def __init__(self, *, history_size: int = 100, clock: Clock | None = None) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()
        self._failures: deque[TaskFailure] = deque(maxlen=history_size)
        self._clock = clock or SystemClock()

    def spawn(self, name: str, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        logger.error("Background task %s failed", task.get_name(), exc_info=exc)
        self._failures.append(
            TaskFailure(task_name=task.get_name(), error=repr(exc), failed_at=self._clock.now())
        )

    @property
    def failures(self) -> list[TaskFailure]:
        return list(self._failures)

    @property
    def running(self) -> list[str]:
        return sorted(t.get_name() for t in self._tasks)

    async def join(self) -> None:
        """Wait for the tasks running right now; failures stay in ``failures``."""
        await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


class LoginPoller:
    """Runs ``poll`` now and then every ``interval`` seconds until stopped.

    ``stop()`` wakes the wait immediately; a poll already in flight is not
    interrupted and finishes within the HTTP client timeout.
    """

    def __init__(
        self,
        login_id: str,
        poll: Callable[[], Awaitable[SyncReport]],
        interval: float,
    ) -> None:
        self._login_id = login_id
        self._poll = poll
        self._interval = interval
        self.last_report: SyncReport | None = None
        self._stop = asyncio.Event()
        self._task: asyncio.Task[Any] | None = None

    @property
    def task_name(self) -> str:
        return f"poller:{self._login_id}"

    def start(self, supervisor: TaskSupervisor) -> None:
        if self._task is not None and not self._task.done():
            return
        self._stop.clear()
        self._task = supervisor.spawn(self.task_name, self.run())
        logger.info("Poller started for %s (interval=%.1fs)", self._login_id, self._interval)

    async def stop(self) -> None:
        self._stop.set()
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
            logger.info("Poller stopped for %s", self._login_id)

    async def run(self) -> None:
        while not self._stop.is_set():
            try:
                report = await self._poll()
            except Exception:
                logger.exception("Poll cycle failed for %s", self._login_id)
            else:
                self.last_report = report
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass
