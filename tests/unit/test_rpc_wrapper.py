"""
Unit tests for the timeout and retry wrappers.

Tests cover:
- Timeouts
- Retries with backoff
- Errors that must not be retried
"""

import asyncio
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from referral_rewards.services.blockchain import (
    RetryPolicy,
    rpc_call_with_retry,
    run_sync,
    with_timeout,
)
from referral_rewards.utils.exceptions import (
    LogDecodeError,
    LogFetchError,
    LogSourceTimeoutError,
)

NO_DELAY = RetryPolicy(attempts=3, timeout=1, base_delay=0)


async def _slow():
    await asyncio.sleep(10)


class TestWithTimeout:
    """Test with_timeout."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        async def fast():
            return 42

        assert await with_timeout(fast(), timeout=1) == 42

    @pytest.mark.asyncio
    async def test_timeout_raises(self):
        """Slow calls raise LogSourceTimeoutError."""
        with pytest.raises(LogSourceTimeoutError, match="slow call"):
            await with_timeout(_slow(), timeout=0.01, label="slow call")


class TestRetryPolicy:
    """Test backoff delays."""

    def test_exponential(self):
        policy = RetryPolicy(attempts=4, base_delay=1.0)

        assert [policy.delay_after(n) for n in range(3)] == [1.0, 2.0, 4.0]

    def test_fixed(self):
        policy = RetryPolicy(base_delay=0.5, exponential_backoff=False)

        assert [policy.delay_after(n) for n in range(3)] == [0.5, 0.5, 0.5]


class TestRetry:
    """Test rpc_call_with_retry."""

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_errors(self):
        """Calls are retried until one succeeds."""
        call = AsyncMock(side_effect=[aiohttp.ClientError("reset"), "ok"])

        result = await rpc_call_with_retry(call, NO_DELAY)

        assert result == "ok"
        assert call.await_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries(self):
        """Persistent failures end in LogFetchError."""
        call = AsyncMock(side_effect=aiohttp.ClientError("down"))

        with pytest.raises(LogFetchError, match="failed after 3 attempts"):
            await rpc_call_with_retry(call, NO_DELAY)

        assert call.await_count == 3

    @pytest.mark.asyncio
    async def test_last_timeout_is_reraised(self):
        """A final timeout keeps its type."""
        policy = RetryPolicy(attempts=2, timeout=0.01, base_delay=0)

        with pytest.raises(LogSourceTimeoutError):
            await rpc_call_with_retry(_slow, policy)

    @pytest.mark.asyncio
    async def test_decode_errors_are_not_retried(self):
        """Corrupt responses fail on the first attempt."""
        call = AsyncMock(side_effect=LogDecodeError("bad log"))

        with pytest.raises(LogDecodeError):
            await rpc_call_with_retry(call, NO_DELAY)

        assert call.await_count == 1

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_not_retried(self):
        """Only transport failures get another attempt."""
        call = AsyncMock(side_effect=AttributeError("'list' object has no attribute 'get'"))

        with pytest.raises(AttributeError):
            await rpc_call_with_retry(call, NO_DELAY)

        assert call.await_count == 1

    @pytest.mark.asyncio
    async def test_sleeps_between_attempts(self):
        """The policy's delays are awaited between attempts only."""
        call = AsyncMock(side_effect=aiohttp.ClientError("down"))
        policy = RetryPolicy(attempts=4, timeout=1, base_delay=1.0)

        with patch(
            "referral_rewards.services.blockchain.rpc_wrapper.asyncio.sleep",
            new=AsyncMock(),
        ) as sleep:
            with pytest.raises(LogFetchError):
                await rpc_call_with_retry(call, policy)

        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0, 4.0]


class TestRunSync:
    """Test run_sync."""

    @pytest.mark.asyncio
    async def test_runs_in_executor(self):
        assert await run_sync(lambda: 7, timeout=1) == 7
