"""
Periodic re-fetch of the collections a dashboard shows.

Ticks never overlap one another. A tick that runs longer than the interval
delays the next one rather than racing it. Writes from on-demand refreshes
and mutations are still ordered by the StateSlot tokens.
"""

import asyncio
from typing import Awaitable, Callable, Mapping, Optional

from eventspark.core.logging import get_logger
from eventspark.core.metrics import record_refresh

logger = get_logger(__name__)

Job = Callable[[], Awaitable[object]]


class RefreshScheduler:
    """Cancellable polling task owned by one dashboard.

    ``start()`` runs every job once before returning and then keeps polling
    every ``interval`` seconds until ``stop()``.
    """

    def __init__(self, jobs: Mapping[str, Job], interval: float) -> None:
        if interval <= 0:
            raise ValueError("Refresh interval must be positive")
        self._jobs = dict(jobs)
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run_job(self, name: str, job: Job) -> bool:
        try:
            await job()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Background failures stay silent for the user; last good data stays
            logger.warning("refresh_job_failed", job=name, error=str(e))
            record_refresh(name, ok=False)
            return False
        record_refresh(name, ok=True)
        return True

    async def tick(self) -> dict[str, bool]:
        """Run all jobs concurrently once. Returns per-job success."""
        self.ticks += 1
        names = list(self._jobs)
        results = await asyncio.gather(*(self._run_job(n, self._jobs[n]) for n in names))
        return dict(zip(names, results))

    async def refresh_now(self) -> dict[str, bool]:
        return await self.tick()

    async def _loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_run = loop.time() + self.interval
        while True:
            await asyncio.sleep(max(0.0, next_run - loop.time()))
            await self.tick()
            next_run = max(next_run + self.interval, loop.time())

    async def start(self) -> None:
        if self.running:
            return
        logger.info("refresh_started", jobs=list(self._jobs), interval=self.interval)
        await self.tick()
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("refresh_stopped", ticks=self.ticks)

    async def __aenter__(self) -> "RefreshScheduler":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
