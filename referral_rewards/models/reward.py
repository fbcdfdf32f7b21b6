"""
Reward models.

Exclusion list entries and allocator output rows.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ExclusionEntry:
    """
    Referrer excluded from a campaign.

    ``should_warn`` only changes how loudly the exclusion is logged.
    """

    referrer_id: str
    should_warn: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExclusionEntry":
        referrer_id = data.get("referrerId", data.get("referrer_id"))
        if referrer_id is None:
            raise KeyError("referrerId")
        should_warn = data.get("shouldWarn", data.get("should_warn", False))
        return cls(referrer_id=str(referrer_id), should_warn=bool(should_warn))


ExclusionMap = Mapping[str, ExclusionEntry]


def build_exclusion_map(
    entries: Iterable[ExclusionEntry],
) -> dict[str, ExclusionEntry]:
    """Key exclusion entries by lowercase referrer address."""
    return {entry.referrer_id.lower(): entry for entry in entries}


@dataclass(frozen=True)
class RewardRow:
    """
    Reward allocated to one referrer.

    Attributes:
        referrer_id: Referrer address
        kpi: Summed KPI of the referrer (before exclusion)
        referral_count: Number of KPI rows credited to the referrer
        reward_amount: Integer string in the reward token's smallest unit
    """

    referrer_id: str
    kpi: int
    referral_count: int
    reward_amount: str

    @property
    def amount(self) -> int:
        return int(self.reward_amount)

    def as_dict(self) -> dict:
        return {
            "referrerId": self.referrer_id,
            "kpi": str(self.kpi),
            "referralCount": self.referral_count,
            "rewardAmount": self.reward_amount,
        }
