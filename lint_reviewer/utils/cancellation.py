"""Per-call deadlines and cooperative cancellation for network calls."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, TypeVar

T = TypeVar("T")


class ReviewCancelledError(RuntimeError):
    """Raised when a review run is cancelled before it completes."""


class CancellationToken:
    """Cooperative cancellation flag shared by one review run."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "Review run cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ReviewCancelledError(self._reason or "Review run cancelled")

    async def wait(self) -> None:
        await self._event.wait()


async def run_with_deadline(
    awaitable: Awaitable[T],
    *,
    timeout: float | None,
    token: CancellationToken | None = None,
) -> T:
    """Await ``awaitable`` under a deadline, aborting early if ``token`` is cancelled.

    Raises ``asyncio.TimeoutError`` when the deadline passes and
    ``ReviewCancelledError`` when the token fires first.
    """

    if token is None:
        return await asyncio.wait_for(awaitable, timeout=timeout)

    if token.cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        token.raise_if_cancelled()
    call = asyncio.ensure_future(awaitable)
    cancel_wait = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({call, cancel_wait}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    except BaseException:
        call.cancel()
        cancel_wait.cancel()
        raise

    await _discard(cancel_wait)
    if call in done:
        return call.result()

    await _discard(call)
    if cancel_wait in done:
        raise ReviewCancelledError(token.reason or "Review run cancelled")
    raise asyncio.TimeoutError(f"Call did not complete within {timeout}s")


async def _discard(task: asyncio.Future) -> None:
    if task.done():
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
