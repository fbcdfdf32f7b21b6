"""
Capped iterative reward allocation ("water-filling").

Referrers are served in descending KPI order. Each takes its proportional
share of what is left, limited by the per-referrer cap. Whatever a capped
referrer could not take stays in the pool for the referrers after it,
because the remaining KPI shrinks by the referrer's full KPI while the
remaining pool shrinks only by the capped reward.
"""

from decimal import Decimal
from typing import TYPE_CHECKING

from loguru import logger

from referral_rewards.models import ReferrerMetrics, RewardRow

from .reward_calculator import (
    REWARD_CONTEXT,
    ExclusionInput,
    as_exact,
    find_excluded_referrers,
    floor_to_int,
    normalize_exclusions,
    proportional_share,
    to_amount,
    total_distributed,
    validate_kpis,
)

if TYPE_CHECKING:
    from loguru import Logger


def referrer_queue(metrics: ReferrerMetrics) -> list[tuple[str, int]]:
    """Referrers by descending KPI, ties by ascending referrer id."""
    return sorted(
        metrics.referrer_kpis.items(),
        key=lambda item: (-item[1], item[0]),
    )


def calculate_capped_rewards(
    metrics: ReferrerMetrics,
    reward_pool: Decimal | int | str,
    per_referrer_cap: Decimal | int | str,
    excluded_referrers: ExclusionInput = None,
    log: "Logger" = logger,
) -> list[RewardRow]:
    """
    Allocate the pool with a per-referrer cap.

    Args:
        metrics: Aggregated referrer KPIs
        reward_pool: Pool in the reward token's smallest unit
        per_referrer_cap: Maximum reward of any single referrer
        excluded_referrers: Exclusion mapping or addresses
        log: Logger receiving exclusion warnings

    Returns:
        One RewardRow per referrer, in descending KPI order. Every amount
        is at most the cap and the total is at most the pool.

    Raises:
        InvalidAmountError: If the pool, the cap or a KPI is negative

    Example:
        pool 1000, cap 400, KPIs 100/50/50 -> 400, 300, 300
    """
    pool = to_amount(reward_pool, "reward pool")
    cap = to_amount(per_referrer_cap, "per-referrer cap")
    validate_kpis(metrics.referrer_kpis)
    exclusions = normalize_exclusions(excluded_referrers)
    excluded = find_excluded_referrers(metrics.referrer_kpis, exclusions, log)

    kpi_sum = sum(
        kpi for referrer_id, kpi in metrics.referrer_kpis.items()
        if referrer_id not in excluded
    )

    rewards_remaining = as_exact(pool)
    kpi_sum_remaining = kpi_sum
    cap_amount = floor_to_int(cap)
    capped = 0
    rewards = []

    for referrer_id, kpi in referrer_queue(metrics):
        is_excluded = referrer_id in excluded
        if is_excluded or kpi_sum_remaining == 0:
            amount = 0
        else:
            share = proportional_share(rewards_remaining, kpi, kpi_sum_remaining)
            if share > cap_amount:
                capped += 1
            amount = min(share, cap_amount)

        if isinstance(rewards_remaining, int):
            rewards_remaining -= amount
        else:
            rewards_remaining = REWARD_CONTEXT.subtract(
                rewards_remaining, Decimal(amount)
            )
        if not is_excluded:
            kpi_sum_remaining -= kpi

        rewards.append(
            RewardRow(
                referrer_id=referrer_id,
                kpi=kpi,
                referral_count=metrics.referrer_referrals.get(referrer_id, 0),
                reward_amount=str(amount),
            )
        )

    log.info(
        f"[Rewards] capped: allocated {total_distributed(rewards)} of {pool} "
        f"(cap {cap}, {capped} referrers capped, {len(excluded)} excluded)"
    )
    return rewards
