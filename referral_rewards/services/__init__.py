"""
Services.

Referral ingestion and reward allocation layer.
"""

# Leaf services
from referral_rewards.services.blockchain import BlockTimestampResolver
from referral_rewards.services.kpi import (
    get_referrer_metrics_from_kpi,
    get_user_metrics_from_kpi,
)
from referral_rewards.services.referral_events import (
    HyperSyncLogSource,
    ReferralEventPipeline,
    remove_duplicates,
)
from referral_rewards.services.reward import (
    calculate_capped_rewards,
    calculate_proportional_rewards,
    calculate_sqrt_proportional_rewards,
)

# Orchestration
from referral_rewards.services.reward_campaign import (
    CampaignResult,
    RewardCampaign,
)

__all__ = [
    "BlockTimestampResolver",
    "CampaignResult",
    "HyperSyncLogSource",
    "ReferralEventPipeline",
    "RewardCampaign",
    "calculate_capped_rewards",
    "calculate_proportional_rewards",
    "calculate_sqrt_proportional_rewards",
    "get_referrer_metrics_from_kpi",
    "get_user_metrics_from_kpi",
    "remove_duplicates",
]
