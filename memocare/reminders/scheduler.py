import asyncio
import logging
import time
from typing import Optional

from .dispatcher import ReminderDispatcher

logger = logging.getLogger(__name__)


def seconds_until_next_tick(
    now_ts: float, interval_seconds: float, last_boundary: Optional[float] = None
) -> float:
    """Delay until the next wall-clock multiple of the interval (cron-like cadence).

    ``last_boundary`` is the boundary the previous tick was aimed at. If the
    sleep woke slightly early, that boundary is still ahead of ``now_ts`` and is
    skipped so it does not tick twice.
    """
    delay = interval_seconds - now_ts % interval_seconds
    if last_boundary is not None and now_ts + delay - last_boundary < interval_seconds / 2:
        delay += interval_seconds
    return delay


class ReminderScheduler:
    """
    Runs the dispatcher on a fixed wall-clock cadence inside the event loop.

    Ticks never overlap: the next boundary is only computed after a tick has
    finished, so a slow tick skips ahead instead of piling up.
    """

    def __init__(self, dispatcher: ReminderDispatcher, interval_seconds: float = 60):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.dispatcher = dispatcher
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self.running:
            logger.info("⚠️ [Scheduler] Already running - skipping duplicate start")
            return self._task
        self._task = asyncio.create_task(self._run(), name="reminder-scheduler")
        logger.info(f"🚀 [Scheduler] Reminder scan every {self.interval_seconds}s")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("⏹️ [Scheduler] Reminder scan stopped")

    async def tick(self) -> None:
        try:
            await self.dispatcher.run_once()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("❌ [Scheduler] Reminder scan failed")

    async def _run(self) -> None:
        boundary = None
        while True:
            now_ts = time.time()
            delay = seconds_until_next_tick(now_ts, self.interval_seconds, boundary)
            boundary = now_ts + delay
            await asyncio.sleep(delay)
            await self.tick()
