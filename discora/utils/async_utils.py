"""
Discora - Async Utilities
=========================

Utilities for handling async operations with proper error logging.
Eliminates silent failures in asyncio.gather and unbounded fan-out.

Usage:
    from discora.utils.async_utils import run_bounded

    # Instead of:
    await asyncio.gather(*(handle(item) for item in items))

    # Use:
    await run_bounded(items, handle, limit=5, context="Giveaway Queue")

"""

import asyncio
from typing import Any, Awaitable, Callable, Coroutine, Iterable, List, Optional, Tuple, TypeVar

from discora.core.logger import logger


T = TypeVar("T")


async def gather_with_logging(
    *operations: Tuple[str, Coroutine[Any, Any, Any]],
    context: Optional[str] = None,
) -> List[Any]:
    """
    Run multiple async operations concurrently with error logging.

    Unlike asyncio.gather with return_exceptions=True, this function
    logs any exceptions that occur so failures aren't silent.

    Args:
        *operations: Tuples of (operation_name, coroutine).
        context: Optional context string for error logs.

    Returns:
        List of results (including exceptions as values, not raised).
    """
    names = [name for name, _ in operations]
    coros = [coro for _, coro in operations]

    results = await asyncio.gather(*coros, return_exceptions=True)

    for i, result in enumerate(results):
        if isinstance(result, Exception):
            error_details = [
                ("Operation", names[i]),
                ("Error Type", type(result).__name__),
                ("Error", str(result)[:100]),
            ]
            if context:
                error_details.insert(0, ("Context", context))

            logger.warning("Async Operation Failed", error_details)

    return results


# =============================================================================
# Bounded Fan-Out
# =============================================================================

async def run_bounded(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[Any]],
    limit: int,
    context: str,
) -> List[Any]:
    """
    Run ``worker`` over every item with at most ``limit`` in flight.

    One item failing never cancels the others. Exceptions escaping a
    worker are logged and returned in place of that item's result, in
    input order.

    Args:
        items: Work items.
        worker: Coroutine function applied to each item.
        limit: Max concurrent workers (values below 1 are treated as 1).
        context: Job name for error logs.

    Returns:
        List of results, exceptions included as values.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def run_one(item: T) -> Any:
        async with semaphore:
            return await worker(item)

    results = await asyncio.gather(*(run_one(item) for item in items), return_exceptions=True)

    for result in results:
        if isinstance(result, Exception):
            logger.error_tree("Worker Failed", result, [
                ("Context", context),
            ])

    return results


__all__ = [
    "gather_with_logging",
    "run_bounded",
]
