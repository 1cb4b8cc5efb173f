"""Periodic refresh loop that drives the badge engine from outside."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from .config import MIN_REFRESH_INTERVAL

logger = logging.getLogger(__name__)


class AutoRefresh:
    """Await ``callback`` every ``interval_seconds`` on an asyncio task.

    Runs never overlap: the next wait starts after the previous callback
    finished, so the engine sees serialized calls.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[object]],
        interval_seconds: float,
        *,
        minimum_interval: float = MIN_REFRESH_INTERVAL,
    ) -> None:
        self._callback = callback
        self._minimum_interval = minimum_interval
        self._interval = max(minimum_interval, interval_seconds)
        self._task: asyncio.Task[None] | None = None
        self._wakeup = asyncio.Event()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("Auto refresh started (every %ss)", self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Auto refresh stopped")

    def set_interval(self, interval_seconds: float) -> None:
        self._interval = max(self._minimum_interval, interval_seconds)
        self._wakeup.set()

    async def _sleep(self) -> None:
        # A set_interval() call restarts the wait with the new interval.
        while True:
            self._wakeup.clear()
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                return

    async def _loop(self) -> None:
        while True:
            try:
                await self._callback()
            except Exception:
                logger.exception("Auto refresh callback failed")
            await self._sleep()
