"""Data models for referral ingestion and reward allocation."""

from referral_rewards.models.kpi import KpiRow, ReferrerMetrics, UserMetrics
from referral_rewards.models.referral_event import (
    FilterParams,
    LogPage,
    RawLog,
    ReferralEvent,
)
from referral_rewards.models.reward import (
    ExclusionEntry,
    ExclusionMap,
    RewardRow,
    build_exclusion_map,
)

__all__ = [
    "ExclusionEntry",
    "ExclusionMap",
    "FilterParams",
    "KpiRow",
    "LogPage",
    "RawLog",
    "ReferralEvent",
    "ReferrerMetrics",
    "RewardRow",
    "UserMetrics",
    "build_exclusion_map",
]
