"""
Bounded-concurrency fan-out.

A fixed number of workers pull the next pending task from a shared queue
until it is empty, so at most `limit` tasks are ever in flight.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[[int, int], None]


async def run_with_concurrency(
    tasks: Sequence[Callable[[], Awaitable[T]]],
    limit: int,
    on_progress: ProgressCallback | None = None,
) -> list[T | BaseException]:
    """
    Run task factories with at most `limit` in flight.

    A task that raises does not stop the pool; its exception is stored in
    the result slot instead.

    Args:
        tasks: Zero-argument coroutine factories
        limit: Maximum number of concurrently running tasks
        on_progress: Called as on_progress(completed, total) after each task

    Returns:
        Results (or exceptions) in submission order
    """
    total = len(tasks)
    results: list[T | BaseException | None] = [None] * total
    if total == 0:
        return []

    queue: asyncio.Queue[int] = asyncio.Queue()
    for index in range(total):
        queue.put_nowait(index)

    completed = 0

    async def worker() -> None:
        nonlocal completed
        while True:
            try:
                index = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                results[index] = await tasks[index]()
            except Exception as e:
                logger.debug(f"Pooled task {index} failed: {e}")
                results[index] = e
            completed += 1
            if on_progress:
                on_progress(completed, total)

    workers = max(1, min(limit, total))
    await asyncio.gather(*(worker() for _ in range(workers)))
    return results  # type: ignore[return-value]
