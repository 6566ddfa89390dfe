import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime

import structlog

logger = structlog.get_logger(__name__)

MarkerFetcher = Callable[[], Awaitable[datetime | None]]
ChangeHandler = Callable[[datetime], Awaitable[None]]


class PhotoEditPoller:
    """
    Re-fetches the item's last-photo-edit marker on a fixed interval until it
    differs from the baseline.

    Owns at most one asyncio task: ``start()`` always stops the previous one.
    A failed fetch is logged and the next tick tries again.
    """

    def __init__(self, fetch: MarkerFetcher, interval_seconds: float) -> None:
        self._fetch = fetch
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None
        self.ticks = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, baseline: datetime | None, on_change: ChangeHandler) -> None:
        self.stop()
        self._task = asyncio.create_task(self._run(baseline, on_change))

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        if task is not asyncio.current_task():
            task.cancel()

    async def _run(self, baseline: datetime | None, on_change: ChangeHandler) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.ticks += 1
            try:
                edited_at = await self._fetch()
            except Exception as exc:
                logger.warning("photo_poll_tick_failed", tick=self.ticks, error=str(exc))
                continue

            if edited_at is not None and edited_at != baseline:
                if self._task is asyncio.current_task():
                    self._task = None
                logger.info("photo_edit_detected", tick=self.ticks, edited_at=edited_at.isoformat())
                await on_change(edited_at)
                return
