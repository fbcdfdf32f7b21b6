"""
Referral event models.

Raw logs as returned by the log source, pages of logs, and decoded
referral attribution events.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RawLog:
    """One log entry returned by the event-indexing service."""

    block_number: int
    timestamp: int
    transaction_hash: str
    data: str
    # topics[0] is the event signature, topics[1:] the indexed arguments
    topics: tuple[str, ...]
    log_index: int | None = None


@dataclass(frozen=True)
class LogPage:
    """A page of logs plus the block to continue from."""

    logs: tuple[RawLog, ...]
    next_block: int

    @property
    def is_empty(self) -> bool:
        return not self.logs


@dataclass(frozen=True)
class ReferralEvent:
    """
    One observed on-chain referral attribution.

    Attributes:
        user_address: Referred user (lowercase hex)
        timestamp: Block timestamp in unix seconds
        referrer_id: Credited referrer (lowercase hex)
        protocol: Campaign protocol the event was fetched for
    """

    user_address: str
    timestamp: int
    referrer_id: str
    protocol: str

    def as_dict(self) -> dict:
        return {
            "userAddress": self.user_address,
            "timestamp": self.timestamp,
            "referrerId": self.referrer_id,
            "protocol": self.protocol,
        }


@dataclass(frozen=True)
class FilterParams:
    """Optional parameters for event matchers."""

    allow_list: frozenset[str] = field(default_factory=frozenset)
