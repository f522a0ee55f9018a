"""Background loops for scheduled maintenance work."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

JobAction = Callable[[], Awaitable[Any]]


class PeriodicJob:
    """Runs ``action`` every ``interval`` seconds on the running event loop."""

    def __init__(self, name: str, interval: float, action: JobAction) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self._action = action
        self._task: Optional[asyncio.Task] = None
        self.runs = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=f"periodic:{self.name}")
        logger.info("Started periodic job %s every %ss", self.name, self.interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Stopped periodic job %s after %s runs", self.name, self.runs)

    async def run_once(self) -> Any:
        """Run the action now; failures are logged and counted, never raised."""
        self.runs += 1
        try:
            return await self._action()
        except asyncio.CancelledError:
            raise
        except Exception:
            self.failures += 1
            logger.exception("Periodic job %s failed", self.name)
            return None

    async def _loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.interval)
                await self.run_once()
        except asyncio.CancelledError:
            logger.debug("Periodic job %s cancelled", self.name)
            raise
