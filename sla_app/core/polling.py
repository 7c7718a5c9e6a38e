"""Periodic re-triggering of async work on a single event loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class PollingScheduler:
    """Run ``callback`` every ``interval`` seconds until stopped.

    The next tick is scheduled only after the previous callback finished, so
    slow fetches never overlap. Callback failures are logged and polling
    continues on the next cycle. ``start`` restarts an already running loop.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[None]],
        interval: float,
        *,
        name: str = "poll",
    ):
        self.callback = callback
        self.interval = float(interval) if interval and interval > 0 else 60.0
        self.name = name
        self._task: asyncio.Task | None = None
        self._enabled = False

    @property
    def is_running(self) -> bool:
        return self._enabled and self._task is not None and not self._task.done()

    def start(self) -> None:
        self.stop()
        self._enabled = True
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        self._enabled = False
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while self._enabled:
            await asyncio.sleep(self.interval)
            if not self._enabled:
                break
            try:
                await self.callback()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("%s tick failed: %s", self.name, exc)
