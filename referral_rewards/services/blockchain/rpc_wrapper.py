"""
Timeout and retry wrappers for remote calls.

Log source pages and blockchain reads are both bounded by a timeout and
retried as a unit. Only transport failures (RETRYABLE in utils.exceptions)
are retried, anything else is raised on the first attempt.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger

from referral_rewards.config.constants import (
    BLOCKCHAIN_TIMEOUT,
    LOG_PAGE_MAX_RETRIES,
    LOG_PAGE_RETRY_DELAY_BASE,
)
from referral_rewards.utils.exceptions import (
    LogFetchError,
    LogSourceTimeoutError,
    is_retryable,
)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently a remote call is attempted."""

    attempts: int = LOG_PAGE_MAX_RETRIES
    timeout: float = BLOCKCHAIN_TIMEOUT
    base_delay: float = LOG_PAGE_RETRY_DELAY_BASE
    exponential_backoff: bool = True

    def delay_after(self, attempt: int) -> float:
        """Sleep before the attempt following ``attempt`` (0-based)."""
        if not self.exponential_backoff:
            return self.base_delay
        return self.base_delay * 2 ** attempt


async def with_timeout(
    awaitable: Awaitable[T],
    timeout: float = BLOCKCHAIN_TIMEOUT,
    label: str = "remote call",
) -> T:
    """
    Await with a deadline.

    Raises:
        LogSourceTimeoutError: If the deadline passes first
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except TimeoutError as e:
        raise LogSourceTimeoutError(f"{label}: no answer within {timeout}s") from e


async def rpc_call_with_retry(
    call: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    label: str = "remote call",
) -> T:
    """
    Run ``call`` until it succeeds or the policy's attempts are used up.

    ``call`` must build a fresh awaitable on every invocation.

    Args:
        call: Zero-argument factory of the awaitable
        policy: Attempts, per-attempt timeout and backoff
        label: Prefix for log lines and error messages

    Returns:
        Whatever the successful attempt returned

    Raises:
        LogSourceTimeoutError: If the final attempt timed out
        LogFetchError: If the final attempt failed with another error
        Exception: Anything that is not a transport failure (decode and
            amount errors included), immediately and without retrying
    """
    policy = policy or RetryPolicy()
    failure: Exception | None = None

    for attempt in range(policy.attempts):
        try:
            result = await with_timeout(call(), policy.timeout, label)
        except Exception as e:
            if not is_retryable(e):
                raise
            failure = e
            if attempt + 1 == policy.attempts:
                break
            delay = policy.delay_after(attempt)
            logger.warning(
                f"{label}: attempt {attempt + 1}/{policy.attempts} failed ({e}), "
                f"next try in {delay}s"
            )
            await asyncio.sleep(delay)
            continue

        if attempt:
            logger.info(f"{label}: recovered on attempt {attempt + 1}")
        return result

    logger.error(f"{label}: giving up after {policy.attempts} attempts: {failure}")
    if isinstance(failure, LogSourceTimeoutError):
        raise failure
    raise LogFetchError(
        f"{label}: failed after {policy.attempts} attempts: {failure}"
    ) from failure


async def run_sync(
    func: Callable[[], Any],
    timeout: float = BLOCKCHAIN_TIMEOUT,
    label: str = "blocking call",
) -> Any:
    """Run a blocking web3 call in the default executor, with a deadline."""
    loop = asyncio.get_running_loop()
    return await with_timeout(loop.run_in_executor(None, func), timeout, label)
