"""
Reward campaign service.

Ties ingestion and allocation together for one campaign: fetch first-touch
referrals for a protocol, then turn externally computed KPI rows into
reward rows and payout lists.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

from referral_rewards.models import (
    FilterParams,
    KpiRow,
    ReferralEvent,
    RewardRow,
)
from referral_rewards.services.kpi import get_referrer_metrics_from_kpi
from referral_rewards.services.referral_events import (
    MatcherFn,
    ReferralEventPipeline,
    filter_events,
)
from referral_rewards.services.reward import (
    calculate_capped_rewards,
    calculate_proportional_rewards,
    calculate_sqrt_proportional_rewards,
    cap_from_proportion,
    to_payout_lists,
    total_distributed,
)
from referral_rewards.services.reward.reward_calculator import (
    ExclusionInput,
    to_amount,
)

if TYPE_CHECKING:
    from loguru import Logger


AllocationStrategy = Literal["linear", "sqrt", "capped"]
STRATEGIES = ("linear", "sqrt", "capped")


@dataclass
class CampaignResult:
    """Result of a campaign allocation."""

    rewards: list[RewardRow]
    reward_pool: Decimal
    total_distributed: int
    users: list[str] = field(default_factory=list)
    amounts: list[str] = field(default_factory=list)

    @property
    def undistributed(self) -> Decimal:
        return self.reward_pool - self.total_distributed


class RewardCampaign:
    """
    One recurring incentive campaign.

    Allocation is a pure computation; only fetch_referrals does I/O.
    """

    def __init__(
        self,
        name: str,
        reward_pool: Decimal | int | str,
        strategy: AllocationStrategy = "linear",
        per_referrer_cap: Decimal | int | str | None = None,
        maximum_reward_proportion: Decimal | str | None = None,
        pipeline: ReferralEventPipeline | None = None,
        log: "Logger" = logger,
    ) -> None:
        """
        Initialize campaign.

        Args:
            name: Campaign name for logging
            reward_pool: Pool in the reward token's smallest unit
            strategy: "linear", "sqrt" or "capped"
            per_referrer_cap: Cap for the capped strategy
            maximum_reward_proportion: Cap as a share of the pool, used
                when per_referrer_cap is not given
            pipeline: Referral event pipeline (needed for fetch_referrals)
            log: Logger for exclusion warnings and progress

        Raises:
            ValueError: If the strategy is unknown or capped lacks a cap
            InvalidAmountError: If the pool or the cap is negative
        """
        if strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown allocation strategy {strategy!r}, "
                f"expected one of {', '.join(STRATEGIES)}"
            )

        self.name = name
        self.reward_pool = to_amount(reward_pool, "reward pool")
        self.strategy = strategy
        self.pipeline = pipeline
        self.log = log

        self.per_referrer_cap: Decimal | None = None
        if per_referrer_cap is not None:
            self.per_referrer_cap = to_amount(per_referrer_cap, "per-referrer cap")
        elif maximum_reward_proportion is not None:
            self.per_referrer_cap = cap_from_proportion(
                self.reward_pool, maximum_reward_proportion
            )

        if strategy == "capped" and self.per_referrer_cap is None:
            raise ValueError(
                "Capped allocation needs per_referrer_cap "
                "or maximum_reward_proportion"
            )

    async def fetch_referrals(
        self,
        protocol: str,
        end_timestamp: datetime | int,
        start_block: int | None = None,
        include_all: bool = False,
        matcher: MatcherFn | None = None,
        filter_params: FilterParams | None = None,
    ) -> list[ReferralEvent]:
        """
        Fetch first-touch referrals of a protocol, optionally filtered.

        Raises:
            RuntimeError: If the campaign has no pipeline
            LogFetchError: If a page could not be fetched (retryable)
        """
        if self.pipeline is None:
            raise RuntimeError(f"Campaign {self.name} has no referral pipeline")

        events = await self.pipeline.fetch_unique_referral_events(
            protocol,
            end_timestamp,
            start_block=start_block,
            include_all=include_all,
        )
        if matcher is not None:
            events = await filter_events(events, matcher, filter_params)
            self.log.info(
                f"[Campaign] {self.name}: {len(events)} referrals "
                f"after filtering"
            )
        return events

    def allocate(
        self,
        kpi_rows: Iterable[KpiRow | Mapping[str, Any]],
        excluded_referrers: ExclusionInput = None,
    ) -> CampaignResult:
        """
        Allocate the pool from KPI rows.

        Raises:
            InvalidAmountError: If a KPI is negative or not an integer
        """
        metrics = get_referrer_metrics_from_kpi(kpi_rows)

        if self.strategy == "linear":
            rewards = calculate_proportional_rewards(
                metrics, self.reward_pool, excluded_referrers, log=self.log
            )
        elif self.strategy == "sqrt":
            rewards = calculate_sqrt_proportional_rewards(
                metrics, self.reward_pool, excluded_referrers, log=self.log
            )
        else:
            rewards = calculate_capped_rewards(
                metrics,
                self.reward_pool,
                self.per_referrer_cap,
                excluded_referrers,
                log=self.log,
            )

        users, amounts = to_payout_lists(rewards)
        result = CampaignResult(
            rewards=rewards,
            reward_pool=self.reward_pool,
            total_distributed=total_distributed(rewards),
            users=users,
            amounts=amounts,
        )
        self.log.info(
            f"[Campaign] {self.name} ({self.strategy}): "
            f"{len(users)} referrers paid, {result.total_distributed} "
            f"distributed, {result.undistributed} left in pool"
        )
        return result
