"""
Proxy race - first-success-of-N over unreliable async strategies.

Every strategy runs concurrently under its own timeout. The first one to
return a value wins and the remaining ones are cancelled. A strategy that
raises or times out is simply out of the race; only when all of them are
out does the caller see a single AllStrategiesFailedError.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

from .exceptions import AllStrategiesFailedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Strategy(Generic[T]):
    """One interchangeable way of producing a result."""
    name: str
    run: Callable[[], Awaitable[T]]
    timeout: float | None = None  # Overrides the race-wide timeout


async def _run_with_timeout(strategy: Strategy[T], timeout: float) -> T:
    return await asyncio.wait_for(strategy.run(), timeout=strategy.timeout or timeout)


async def race(strategies: Sequence[Strategy[T]], timeout: float) -> T:
    """
    Run all strategies concurrently and return the first successful result.

    Args:
        strategies: Idempotent, side-effect-free strategies
        timeout: Per-strategy timeout in seconds

    Returns:
        The result of whichever strategy succeeded first

    Raises:
        AllStrategiesFailedError: If every strategy failed or timed out
    """
    if not strategies:
        raise AllStrategiesFailedError([], "No strategies to race")

    tasks: dict[asyncio.Task, Strategy[T]] = {
        asyncio.create_task(_run_with_timeout(s, timeout)): s for s in strategies
    }
    pending = set(tasks)
    errors: list[BaseException] = []

    try:
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                strategy = tasks[task]
                if task.cancelled():
                    errors.append(asyncio.CancelledError(strategy.name))
                    continue
                error = task.exception()
                if error is None:
                    logger.debug(f"Strategy '{strategy.name}' won the race")
                    return task.result()
                if isinstance(error, asyncio.TimeoutError):
                    logger.debug(f"Strategy '{strategy.name}' timed out")
                else:
                    logger.debug(f"Strategy '{strategy.name}' failed: {error}")
                errors.append(error)
    finally:
        # Losers are abandoned; their results are never read
        for task in pending:
            task.cancel()

    raise AllStrategiesFailedError(errors)
