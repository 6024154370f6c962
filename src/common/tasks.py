# ABOUTME: Runs independent awaitables as one batch that fails fast.
# ABOUTME: The first failure cancels the rest of the batch and is re-raised unchanged.

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, List


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """
    Await ``aws`` concurrently and return their results in submission order.

    If any of them raises, the still-running ones are cancelled and the
    earliest-submitted failure propagates.
    """

    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []

    try:
        _, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    failed = [task for task in tasks if task.done() and not task.cancelled() and task.exception() is not None]
    if failed:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        raise failed[0].exception()
    return [task.result() for task in tasks]
