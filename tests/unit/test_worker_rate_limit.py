"""Unit tests for the rate limit gate."""

from unittest.mock import AsyncMock

import pytest

from backstroke_worker.worker.rate_limit import RateLimitGate


@pytest.mark.asyncio
async def test_gate_passes_when_quota_left() -> None:
    """A positive quota lets the caller through without sleeping."""
    sleep = AsyncMock()
    gate = RateLimitGate(AsyncMock(return_value=42), sleep=sleep)

    await gate.await_quota()

    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_gate_polls_until_quota_returns() -> None:
    """An exhausted quota is polled at a fixed interval until it recovers."""
    check_quota = AsyncMock(side_effect=[0, 0, 0, 5])
    sleep = AsyncMock()
    gate = RateLimitGate(check_quota, poll_interval=1.0, sleep=sleep)

    await gate.await_quota()

    assert check_quota.await_count == 4
    assert sleep.await_count == 3
    sleep.assert_awaited_with(1.0)


@pytest.mark.asyncio
async def test_gate_without_quota_check_is_noop() -> None:
    """Without a quota check the gate never blocks."""
    sleep = AsyncMock()

    await RateLimitGate(None, sleep=sleep).await_quota()

    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_gate_propagates_quota_check_failure() -> None:
    """A failing quota check is not retried."""
    check_quota = AsyncMock(side_effect=ConnectionError("rate limit endpoint unavailable"))
    gate = RateLimitGate(check_quota, sleep=AsyncMock())

    with pytest.raises(ConnectionError):
        await gate.await_quota()
    check_quota.assert_awaited_once()
