"""Periodic garbage collection for the print queue and input sessions."""

import asyncio
import contextlib
import logging

from cardbooth.queue import PrintQueue
from cardbooth.sessions import InputSessionStore

logger = logging.getLogger(__name__)


class Sweeper:
    """Runs the queue and session sweeps on a fixed interval in a background task."""

    def __init__(self, queue: PrintQueue, sessions: InputSessionStore, interval_seconds: float = 10) -> None:
        self.queue = queue
        self.sessions = sessions
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> None:
        """Run one pass over both stores."""
        if self.queue.collect_garbage():
            self.queue.notifier.publish_queue_update(self.queue.pending_count())
        self.sessions.sweep()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self.is_running:
            logger.warning("Sweeper already running")
            return
        self._task = asyncio.create_task(self._loop(), name="cardbooth-sweeper")
        logger.info(f"Started sweeper (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the background sweep loop."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Stopped sweeper")

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.sweep_once()
            except Exception as e:
                logger.error(f"Sweep failed: {e}")
