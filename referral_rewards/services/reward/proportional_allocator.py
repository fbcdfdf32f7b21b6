"""
Proportional reward allocation.

Splits a reward pool among referrers in proportion to a weight: the KPI
itself (linear) or its square root. Shares are floored, so the sum of
rewards never exceeds the pool; the shortfall is the sum of the dropped
fractions, less than one unit per referrer.
"""

from collections.abc import Callable
from decimal import Decimal
from typing import TYPE_CHECKING

from loguru import logger

from referral_rewards.models import ReferrerMetrics, RewardRow

from .reward_calculator import (
    ExclusionInput,
    as_exact,
    exact_sum,
    find_excluded_referrers,
    normalize_exclusions,
    proportional_share,
    sqrt_down,
    to_amount,
    total_distributed,
    validate_kpis,
)

if TYPE_CHECKING:
    from loguru import Logger


def _linear_weight(kpi: int) -> int:
    return kpi


def _allocate(
    metrics: ReferrerMetrics,
    reward_pool: Decimal | int | str,
    weight_fn: Callable[[int], int | Decimal],
    excluded_referrers: ExclusionInput,
    log: "Logger",
    label: str,
) -> list[RewardRow]:
    pool = as_exact(to_amount(reward_pool, "reward pool"))
    validate_kpis(metrics.referrer_kpis)
    exclusions = normalize_exclusions(excluded_referrers)
    excluded = find_excluded_referrers(metrics.referrer_kpis, exclusions, log)

    weights = {
        referrer_id: weight_fn(kpi)
        for referrer_id, kpi in metrics.referrer_kpis.items()
        if referrer_id not in excluded
    }
    total_weight = exact_sum(weights.values())

    rewards = []
    for referrer_id, kpi in metrics.referrer_kpis.items():
        weight = weights.get(referrer_id)
        if weight is None:
            amount = 0
        else:
            amount = proportional_share(pool, weight, total_weight)
        rewards.append(
            RewardRow(
                referrer_id=referrer_id,
                kpi=kpi,
                referral_count=metrics.referrer_referrals.get(referrer_id, 0),
                reward_amount=str(amount),
            )
        )

    if total_weight == 0:
        log.warning(f"[Rewards] {label}: total weight is zero, nothing allocated")
    else:
        log.info(
            f"[Rewards] {label}: allocated {total_distributed(rewards)} of {pool} "
            f"to {len(weights)} referrers ({len(excluded)} excluded)"
        )
    return rewards


def calculate_proportional_rewards(
    metrics: ReferrerMetrics,
    reward_pool: Decimal | int | str,
    excluded_referrers: ExclusionInput = None,
    log: "Logger" = logger,
) -> list[RewardRow]:
    """
    Linear proportional prize contest.

    reward = floor(pool * kpi / total_kpi), where total_kpi covers
    non-excluded referrers only. Excluded referrers, and everyone when
    total_kpi is zero, get "0".

    Args:
        metrics: Aggregated referrer KPIs
        reward_pool: Pool in the reward token's smallest unit
        excluded_referrers: Exclusion mapping or addresses
        log: Logger receiving exclusion warnings

    Returns:
        One RewardRow per referrer, in metrics order

    Raises:
        InvalidAmountError: If the pool or a KPI is negative
    """
    return _allocate(
        metrics, reward_pool, _linear_weight, excluded_referrers, log, "linear"
    )


def calculate_sqrt_proportional_rewards(
    metrics: ReferrerMetrics,
    reward_pool: Decimal | int | str,
    excluded_referrers: ExclusionInput = None,
    log: "Logger" = logger,
) -> list[RewardRow]:
    """
    Square-root proportional prize contest.

    Same as the linear contest with weight sqrt(kpi), truncated toward
    zero at 18 fractional digits. Dampens the advantage of very large
    (or inflated) KPIs while staying monotonic.

    Raises:
        InvalidAmountError: If the pool or a KPI is negative
    """
    return _allocate(
        metrics, reward_pool, sqrt_down, excluded_referrers, log, "sqrt"
    )
