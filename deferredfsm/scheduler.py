"""
EventScheduler: FIFO run queue serviced by the asyncio event loop.

Each scheduled task runs on a later loop turn than the one that scheduled
it, one task per turn, each to completion. A task scheduled from inside a
running task lands behind everything already queued, so work posted from a
callback never executes inside that callback's call stack.
"""

import asyncio
import logging
from collections import deque
from typing import Callable, Deque, Optional

logger = logging.getLogger(__name__)


class EventScheduler:
    """
    Cooperative FIFO scheduler.

    Args:
        loop: Event loop to run tasks on. When omitted, the loop running at
              each ``schedule()`` call is used, so schedulers (and the
              machines owning them) can be built outside a loop and outlive
              any single ``asyncio.run()``.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._queue: Deque[Callable[[], None]] = deque()
        # Loop a run of _run_next is pending on, if any.
        self._requested_on: Optional[asyncio.AbstractEventLoop] = None

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """
        The loop tasks run on: the explicit one, else the running one.

        Raises:
            RuntimeError: If no loop was given and none is running.
        """
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    @property
    def pending(self) -> int:
        """Number of tasks queued but not yet started."""
        return len(self._queue)

    def schedule(self, task: Callable[[], None]) -> None:
        """Append ``task`` to the run queue. Never runs it synchronously."""
        loop = self.loop
        self._queue.append(task)
        logger.debug(f"Scheduled task ({len(self._queue)} pending)")
        self._request_run(loop)

    def _request_run(self, loop: asyncio.AbstractEventLoop) -> None:
        # A request left on a loop that has since closed will never fire.
        if self._requested_on is loop:
            return
        self._requested_on = loop
        loop.call_soon(self._run_next)

    def _run_next(self) -> None:
        self._requested_on = None
        if not self._queue:
            return

        task = self._queue.popleft()
        try:
            task()
        except Exception as e:
            logger.error(f"Scheduled task failed: {e}", exc_info=True)
        finally:
            # One task per turn, so other loop work can interleave.
            if self._queue:
                self._request_run(self.loop)
