"""
Debounce helper for lookups triggered while the user is still typing.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Run only the last of a burst of calls, after a quiet period.

    Each `schedule` cancels the pending call, whether it is still waiting
    out its delay or already running its work, and starts a new delay. The
    callback of a superseded call is never invoked.
    """

    def __init__(self, delay: float = 0.5):
        self.delay = delay
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(
        self,
        work: Callable[[], Awaitable[Any]],
        callback: Callable[[Any], None],
    ) -> asyncio.Task:
        """
        Schedule `work` to run after the delay and pass its result to `callback`.

        Must be called from a running event loop.
        """
        self.cancel()
        self._task = asyncio.create_task(self._run(work, callback))
        return self._task

    def cancel(self) -> None:
        """Cancel the pending call, if any."""
        if self.pending:
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait for the pending call to finish (no-op when nothing is pending)."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(
        self,
        work: Callable[[], Awaitable[Any]],
        callback: Callable[[Any], None],
    ) -> None:
        await asyncio.sleep(self.delay)
        result = await work()
        try:
            callback(result)
        except Exception as e:
            logger.error(f"Debounced callback failed: {e}")
