"""Concurrency management for batch processing."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from imagit.config.constants import DEFAULT_MAX_CONCURRENCY
from imagit.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class TaskResult(Generic[T]):
    """Result of a concurrent task."""

    item: T
    success: bool
    result: Any | None = None
    error: str | None = None
    exception: Exception | None = None
    skipped: bool = False


def _notify(
    on_progress: Callable[[T, R | None, Exception | None], None] | None,
    item: T,
    result: R | None,
    error: Exception | None,
) -> None:
    """Report progress; a failing callback is logged and never fails the item."""
    if on_progress is None:
        return
    try:
        on_progress(item, result, error)
    except Exception as e:
        log.warning("Progress callback failed", item=str(item), error=str(e))


class ConcurrencyManager:
    """Runs tasks through one shared worker limit.

    The limit is global: every task submitted through the same manager
    competes for the same ``max_workers`` slots.
    """

    def __init__(self, max_workers: int = DEFAULT_MAX_CONCURRENCY) -> None:
        """Initialize the concurrency manager.

        Args:
            max_workers: Maximum number of tasks running at once
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self.active = 0
        self.peak = 0

        self._semaphore: asyncio.Semaphore | None = None

    def _get_semaphore(self) -> asyncio.Semaphore:
        """Get or create the worker semaphore."""
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_workers)
        return self._semaphore

    def _enter(self) -> None:
        self.active += 1
        self.peak = max(self.peak, self.active)

    def _exit(self) -> None:
        self.active -= 1

    async def map_tasks(
        self,
        items: list[T],
        func: Callable[[T], Awaitable[R]],
        on_progress: Callable[[T, R | None, Exception | None], None] | None = None,
        fail_fast: bool = False,
    ) -> list[TaskResult[T]]:
        """Process items concurrently within the worker limit.

        Args:
            items: Items to process
            func: Async function to apply to each item
            on_progress: Optional callback for progress updates
            fail_fast: Once any item fails, items still waiting for a slot
                are not started. Items already running finish normally.

        Returns:
            List of TaskResult objects, in input order
        """
        semaphore = self._get_semaphore()
        failed = asyncio.Event()

        async def process_item(item: T) -> TaskResult[T]:
            async with semaphore:
                if fail_fast and failed.is_set():
                    return TaskResult(item=item, success=False, skipped=True)

                self._enter()
                try:
                    result = await func(item)
                except Exception as e:
                    failed.set()
                    log.debug("Task failed", item=str(item), error=str(e))
                    _notify(on_progress, item, None, e)
                    return TaskResult(item=item, success=False, error=str(e), exception=e)
                finally:
                    self._exit()

                _notify(on_progress, item, result, None)
                return TaskResult(item=item, success=True, result=result)

        tasks = [process_item(item) for item in items]
        return await asyncio.gather(*tasks)
