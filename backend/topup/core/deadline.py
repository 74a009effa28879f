"""
Top-Up Reconciler - Deadlines

A deadline that only reports ReconciliationTimeout when it actually
expired. Errors raised by the awaited operation, TimeoutError included,
reach the caller unchanged.
"""

import asyncio
from typing import Awaitable, TypeVar

from topup.core.exceptions import ReconciliationTimeout

T = TypeVar("T")


async def run_with_deadline(operation: str, awaitable: Awaitable[T], timeout: float) -> T:
    """
    Await `awaitable` for at most `timeout` seconds.

    Raises:
        ReconciliationTimeout: the deadline passed; the work is cancelled
    """
    task = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task not in done:
        task.cancel()
        await asyncio.wait({task})
        raise ReconciliationTimeout(operation, timeout)

    return task.result()
