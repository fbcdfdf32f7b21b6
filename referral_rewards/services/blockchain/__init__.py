"""
Blockchain helpers.

Timeout and retry wrappers for remote calls, and timestamp to block
resolution.
"""

from .block_operations import BlockTimestampResolver, to_unix_seconds
from .rpc_wrapper import RetryPolicy, rpc_call_with_retry, run_sync, with_timeout

__all__ = [
    "BlockTimestampResolver",
    "RetryPolicy",
    "rpc_call_with_retry",
    "run_sync",
    "to_unix_seconds",
    "with_timeout",
]
