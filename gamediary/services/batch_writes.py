"""Helpers for multi-record writes that the store cannot run transactionally."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine, Hashable, Mapping
from typing import Any, TypeVar

from gamediary.errors import BatchWriteError

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


async def write_batch(
    writes: Mapping[K, Callable[[], Awaitable[Any]]],
    *,
    attempts: int,
    backoff_seconds: float,
    label: str = "batch",
) -> dict[K, Any]:
    """Run independent writes concurrently, retrying only the ones that fail.

    ``writes`` maps a key (usually the target record id) to a zero-argument
    callable producing the write coroutine, so a failed write can be issued
    again.  Writes must be idempotent, e.g. setting a position by absolute
    value.  Returns the result of every write keyed like ``writes``; raises
    :class:`BatchWriteError` naming the keys that still fail after
    ``attempts`` rounds.
    """

    remaining: dict[K, Callable[[], Awaitable[Any]]] = dict(writes)
    results: dict[K, Any] = {}
    errors: dict[K, BaseException] = {}

    for attempt in range(1, attempts + 1):
        if not remaining:
            break

        keys = list(remaining)
        outcomes = await asyncio.gather(
            *(remaining[key]() for key in keys), return_exceptions=True
        )

        errors = {}
        for key, outcome in zip(keys, outcomes):
            if isinstance(outcome, Exception):
                errors[key] = outcome
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results[key] = outcome
                del remaining[key]

        if not remaining:
            break

        logger.warning(
            "%s: %d of %d write(s) failed on attempt %d/%d",
            label,
            len(remaining),
            len(writes),
            attempt,
            attempts,
        )
        if attempt < attempts and backoff_seconds > 0:
            await asyncio.sleep(backoff_seconds * attempt)

    if remaining:
        raise BatchWriteError(remaining.keys(), errors)
    return results


def log_detached_failure(task: asyncio.Future[Any]) -> None:
    """Done-callback reporting the failure of a task nobody awaits any more."""

    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(
            "Operation failed after its caller went away: %s",
            exc,
            exc_info=(type(exc), exc, exc.__traceback__),
        )


async def run_to_completion(operation: Coroutine[Any, Any, T]) -> T:
    """Await ``operation`` in its own task, shielded from caller cancellation.

    Cancelling the caller (for example a client navigating away) leaves the
    task running, so a batch that already started writing is never abandoned
    halfway and keeps holding its entity locks until it settles.  A failure
    that nobody is left to receive is logged instead.
    """

    task = asyncio.ensure_future(operation)
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        task.add_done_callback(log_detached_failure)
        raise


__all__ = ["log_detached_failure", "run_to_completion", "write_batch"]
