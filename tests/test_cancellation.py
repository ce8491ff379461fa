import asyncio

import pytest

from lint_reviewer.utils.cancellation import CancellationToken, ReviewCancelledError, run_with_deadline


async def _value(value, delay: float = 0.0):
    await asyncio.sleep(delay)
    return value


@pytest.mark.asyncio
async def test_returns_result_within_deadline() -> None:
    assert await run_with_deadline(_value(3), timeout=1.0, token=CancellationToken()) == 3
    assert await run_with_deadline(_value(4), timeout=1.0) == 4


@pytest.mark.asyncio
async def test_deadline_expires() -> None:
    with pytest.raises(asyncio.TimeoutError):
        await run_with_deadline(_value(1, delay=5), timeout=0.01, token=CancellationToken())


@pytest.mark.asyncio
async def test_already_cancelled_token_raises_immediately() -> None:
    token = CancellationToken()
    token.cancel("shutting down")
    with pytest.raises(ReviewCancelledError, match="shutting down"):
        await run_with_deadline(_value(1), timeout=1.0, token=token)


@pytest.mark.asyncio
async def test_cancellation_interrupts_pending_call() -> None:
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    loop.call_later(0.01, token.cancel, "SIGTERM")

    with pytest.raises(ReviewCancelledError, match="SIGTERM"):
        await run_with_deadline(_value(1, delay=5), timeout=10.0, token=token)


def test_first_cancel_reason_is_kept() -> None:
    token = CancellationToken()
    token.cancel("first")
    token.cancel("second")
    assert token.cancelled
    assert token.reason == "first"


@pytest.mark.asyncio
async def test_expired_call_is_cancelled_before_returning() -> None:
    state = {"cancelled": False}

    async def slow():
        try:
            await asyncio.sleep(5)
        except asyncio.CancelledError:
            state["cancelled"] = True
            raise

    with pytest.raises(asyncio.TimeoutError):
        await run_with_deadline(slow(), timeout=0.01, token=CancellationToken())
    assert state["cancelled"] is True
