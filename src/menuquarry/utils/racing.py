"""
First-success racing of concurrent coroutines.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Iterable, Optional, TypeVar

import structlog

from menuquarry.protocols import Outcome

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def first_success(aws: Iterable[Awaitable[Optional[T]]]) -> Outcome[Optional[T]]:
    """
    Run awaitables concurrently and return the first non-None result.

    Results are consumed in completion order; among tasks finishing in the same
    step, submission order decides. Once a winner is found, or everything has
    failed, the remaining tasks are cancelled and awaited so their ``finally``
    blocks run before this returns. Exceptions raised by the awaitables are
    collected in ``Outcome.errors``. Cancellation of the caller cancels every
    task as well.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    outcome: Outcome[Optional[T]] = Outcome(value=None)
    if not tasks:
        return outcome

    order = {task: index for index, task in enumerate(tasks)}
    try:
        pending = set(tasks)
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in sorted(done, key=order.__getitem__):
                if task.cancelled():
                    continue
                exc = task.exception()
                if exc is not None:
                    logger.debug("Raced task failed", error=str(exc), error_type=type(exc).__name__)
                    outcome.errors.append(exc)
                    continue
                result = task.result()
                if result is not None:
                    outcome.value = result
                    return outcome
        return outcome
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
