import asyncio
import logging
from typing import Awaitable, Callable

LOGGER = logging.getLogger("runtime.runner")

TickFn = Callable[[], Awaitable[None]]

class PeriodicTask:
    """Async driver that runs one coroutine function on a fixed cadence.

    A tick that raises is logged and the next tick still runs; a slow tick
    delays the next one rather than overlapping it.
    """

    def __init__(self, name: str, tick: TickFn, interval_s: float):
        self.name = name
        self._tick = tick
        self.interval_s = interval_s
        self.ticks = 0
        self.failures = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self):
        """Start the tick loop."""
        if self._task:
            return
        self._task = asyncio.create_task(self._loop(), name=self.name)

    async def stop(self):
        """Stop the tick loop gracefully."""
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def run_once(self):
        """Run a single tick, absorbing its failure."""
        self.ticks += 1
        try:
            await self._tick()
        except asyncio.CancelledError:
            raise
        except Exception:
            self.failures += 1
            LOGGER.exception("[%s] tick %d failed", self.name, self.ticks)

    async def _loop(self):
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_s)

