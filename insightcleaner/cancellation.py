"""
Cooperative cancellation and composite deadlines.

A generation call must stop as soon as either the caller cancels or the
configured timeout elapses, including while the response body is still
downloading. run_with_deadline() merges both sources into one deadline that
covers the whole awaited operation.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancelledException(Exception):
    """Raised when a CancellationToken fires before the awaited operation finishes."""

    pass


class CancellationToken:
    """
    Caller-side stop signal for describe and catalog calls.

    A scan session hands one token to every describe call it starts; calling
    cancel() aborts all in-flight HTTP round trips, which then resolve to the
    empty insight. run_with_deadline() races the token against the timer.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._event = asyncio.Event()

    def cancel(self) -> None:
        """Abort every call holding this token; repeat calls are no-ops."""
        self._cancelled = True
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def check(self) -> None:
        """
        Raise before starting work under an aborted token.

        Raises:
            CancelledException: If cancel() has been called
        """
        if self._cancelled:
            raise CancelledException("Operation was cancelled")

    async def wait_for_cancellation(self, timeout: float | None = None) -> bool:
        """
        Block until cancel() is called; this is the token side of the deadline race.

        Args:
            timeout: Give up after this many seconds, None to wait indefinitely

        Returns:
            True once cancelled, False if timeout elapsed first
        """
        try:
            await asyncio.wait_for(self._event.wait(), timeout)
            return True
        except TimeoutError:
            return False


async def run_with_deadline(
    operation: Awaitable[T],
    timeout_seconds: float | None,
    cancellation: CancellationToken | None = None,
) -> T:
    """
    Await operation until it completes, the timer fires, or the token is cancelled.

    Whichever source fires first wins; the operation is then cancelled and
    awaited so its resources (open connections, response streams) are released.

    Args:
        operation: Coroutine covering the full request lifecycle
        timeout_seconds: Timer budget, None for no timer
        cancellation: Caller's cancellation token

    Returns:
        The operation's result

    Raises:
        TimeoutError: If the timer fired first
        CancelledException: If the token was cancelled first
        Exception: Anything the operation itself raised
    """
    task = asyncio.ensure_future(operation)
    if cancellation is not None and cancellation.is_cancelled:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise CancelledException("Operation was cancelled")

    waiters: set[asyncio.Future] = {task}
    cancel_waiter: asyncio.Future | None = None
    if cancellation is not None:
        cancel_waiter = asyncio.ensure_future(cancellation.wait_for_cancellation())
        waiters.add(cancel_waiter)

    try:
        done, _ = await asyncio.wait(
            waiters,
            timeout=timeout_seconds,
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        pending = [waiter for waiter in waiters if not waiter.done()]
        for waiter in pending:
            waiter.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    if task in done:
        return task.result()
    if cancel_waiter is not None and cancel_waiter in done:
        raise CancelledException("Operation was cancelled")
    raise TimeoutError(f"Operation timed out after {timeout_seconds}s")


__all__ = [
    "CancellationToken",
    "CancelledException",
    "run_with_deadline",
]
