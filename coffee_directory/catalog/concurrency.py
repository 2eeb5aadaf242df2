"""
Fail-fast fan-out for concurrent catalog queries.
"""

import asyncio
import logging
from typing import Any, Awaitable, List


logger = logging.getLogger(__name__)


async def gather_fail_fast(*aws: Awaitable[Any]) -> List[Any]:
    """
    Run awaitables concurrently and return their results in order.

    Unlike asyncio.gather, the first failure cancels every sibling that is
    still running before the error propagates, and cancelling the caller
    cancels all children.

    Args:
        *aws: Coroutines or futures to run

    Returns:
        Results in the order the awaitables were given

    Raises:
        Exception: The first exception raised by any awaitable
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        for task in tasks:
            if task.done() and not task.cancelled() and task.exception() is not None:
                if pending:
                    logger.debug(f"Cancelling {len(pending)} sibling queries after failure")
                raise task.exception()
        return [task.result() for task in tasks]
    finally:
        outstanding = [task for task in tasks if not task.done()]
        for task in outstanding:
            task.cancel()
        if outstanding:
            await asyncio.gather(*outstanding, return_exceptions=True)
