"""Detached background work that never affects the request that started it."""

import asyncio
from typing import Any, Coroutine, Optional

import structlog

from greenlight.config import get_settings

logger = structlog.get_logger(__name__)

# Track pending background tasks so shutdown can drain them
_pending_tasks: set[asyncio.Task] = set()
_semaphore: Optional[asyncio.Semaphore] = None
_semaphore_loop: Optional[asyncio.AbstractEventLoop] = None


def _get_semaphore() -> asyncio.Semaphore:
    """Return the concurrency limiter for the running event loop."""
    global _semaphore, _semaphore_loop
    loop = asyncio.get_running_loop()
    if _semaphore is None or _semaphore_loop is not loop:
        _semaphore = asyncio.Semaphore(get_settings().background_max_concurrency)
        _semaphore_loop = loop
    return _semaphore


async def _guarded(coro: Coroutine[Any, Any, Any], name: str) -> None:
    async with _get_semaphore():
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                "background_task_failed",
                task=name,
                error=str(e),
                exc_info=True,
            )


def run_in_background(coro: Coroutine[Any, Any, Any], name: str = "task") -> asyncio.Task:
    """Schedule a coroutine as a fire-and-forget task.

    The caller does not await the result. At most
    ``background_max_concurrency`` tasks run at once; the rest wait their
    turn. Exceptions are logged and swallowed.

    Args:
        coro: Coroutine to execute
        name: Label used in log entries

    Returns:
        The created asyncio.Task
    """
    task = asyncio.create_task(_guarded(coro, name))
    _pending_tasks.add(task)
    task.add_done_callback(_pending_tasks.discard)
    return task


def pending_count() -> int:
    return len(_pending_tasks)


async def await_background_tasks(timeout: float = 5.0) -> None:
    """Wait for all pending background tasks to complete.

    Called during application shutdown.

    Args:
        timeout: Maximum seconds to wait for pending tasks
    """
    if not _pending_tasks:
        return

    logger.info("draining_background_tasks", count=len(_pending_tasks))
    try:
        await asyncio.wait_for(
            asyncio.gather(*_pending_tasks, return_exceptions=True),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning(
            "background_tasks_timeout",
            remaining=len(_pending_tasks),
        )
