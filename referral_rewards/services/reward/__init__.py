"""
Reward allocation package.

This package provides the reward allocation algorithms:
- reward_calculator: Decimal context, rounding, exclusion and payout helpers
- proportional_allocator: Linear and square-root proportional prize contests
- capped_allocator: Capped iterative (water-filling) allocation

All components are re-exported for easy importing.
"""

from referral_rewards.services.reward.capped_allocator import (
    calculate_capped_rewards,
    referrer_queue,
)
from referral_rewards.services.reward.proportional_allocator import (
    calculate_proportional_rewards,
    calculate_sqrt_proportional_rewards,
)
from referral_rewards.services.reward.reward_calculator import (
    REWARD_CONTEXT,
    cap_from_proportion,
    normalize_exclusions,
    sqrt_down,
    to_payout_lists,
    total_distributed,
)

__all__ = [
    "REWARD_CONTEXT",
    "calculate_capped_rewards",
    "calculate_proportional_rewards",
    "calculate_sqrt_proportional_rewards",
    "cap_from_proportion",
    "normalize_exclusions",
    "referrer_queue",
    "sqrt_down",
    "to_payout_lists",
    "total_distributed",
]
