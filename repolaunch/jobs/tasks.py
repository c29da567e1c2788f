import asyncio
import logging
from typing import Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Keeps references to fire-and-forget setup tasks so they are not garbage collected mid-flight and can be cancelled on shutdown."""

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine, name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for outstanding tasks; whatever is still running after timeout is left alone."""
        if self._tasks:
            await asyncio.wait(set(self._tasks), timeout=timeout)

    async def shutdown(self) -> None:
        """Cancel outstanding tasks and wait for them to unwind."""
        tasks = set(self._tasks)
        if not tasks:
            return
        logger.info("Cancelling %d running setup tasks", len(tasks))
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
