"""Periodic background loops (safe-exit tick, alert sweep, feed poll)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs a blocking job every interval_seconds on a worker thread."""

    def __init__(self, name: str, job: Callable[[], Any], interval_seconds: float) -> None:
        self.name = name
        self._job = job
        self._interval = interval_seconds
        self._running = False
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.info("Periodic task started: %s every %ss", self.name, self._interval)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Periodic task stopped: %s", self.name)

    async def run_once(self) -> Any:
        return await asyncio.to_thread(self._job)

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except Exception:  # noqa: BLE001
                logger.exception("Periodic task %s failed", self.name)
            await asyncio.sleep(self._interval)
