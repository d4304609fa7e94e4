"""
Ownership of detached job tasks.

Job bodies are launched from request handlers that return before the body
finishes. The supervisor keeps a strong reference to every task so none is
garbage-collected mid-run, logs tasks that die with an exception, and
cancels whatever is still running when the application shuts down.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class TaskSupervisor:
    def __init__(self, name: str):
        self.name = name
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], task_name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=task_name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Supervised task crashed",
                supervisor=self.name,
                task=task.get_name(),
                error=str(error),
                error_type=type(error).__name__,
            )

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    async def shutdown(self) -> None:
        """Cancel all running tasks and wait for them to unwind."""
        tasks = list(self._tasks)
        if not tasks:
            return

        logger.info("Cancelling supervised tasks", supervisor=self.name, count=len(tasks))
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
