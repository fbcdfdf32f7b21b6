"""
Exception handling utilities.

Defines categorized exception types for referral ingestion and reward math.
"""

import aiohttp


class RewardsError(Exception):
    """Base exception for the referral rewards engine."""
    pass


class InvalidAmountError(RewardsError, ValueError):
    """Raised when a KPI, reward pool or cap is negative or not an integer."""
    pass


class LogDecodeError(RewardsError, ValueError):
    """Raised when a raw log cannot be decoded into a referral event."""
    pass


class LogFetchError(RewardsError):
    """
    Raised when a log page cannot be fetched.

    Retryable: the caller restarts the pipeline from ``resume_block``.
    """

    def __init__(
        self,
        message: str,
        protocol: str | None = None,
        resume_block: int | None = None,
    ) -> None:
        super().__init__(message)
        self.protocol = protocol
        self.resume_block = resume_block


class LogSourceTimeoutError(LogFetchError):
    """Raised when a log source request times out."""
    pass


# Exception categories based on handling strategy

# Retryable - the whole pipeline run may be restarted
RETRYABLE = (
    LogFetchError,
    aiohttp.ClientError,  # Indexing service network errors
    TimeoutError,
)

# Must raise - corrupt input, retrying will not help
MUST_RAISE = (
    InvalidAmountError,
    LogDecodeError,
)


def is_retryable(exc: Exception) -> bool:
    """
    Check if exception is a transient fetch failure.

    Args:
        exc: Exception to check

    Returns:
        True if the failed operation can be retried
    """
    return isinstance(exc, RETRYABLE) and not must_raise(exc)


def must_raise(exc: Exception) -> bool:
    """
    Check if exception must be raised.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be raised
    """
    return isinstance(exc, MUST_RAISE)
