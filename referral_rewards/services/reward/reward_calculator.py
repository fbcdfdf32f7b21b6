"""
Reward calculator.

Shared numeric and exclusion helpers for the reward allocators. Integral
amounts are kept as int and divided exactly; fractional ones (square-root
weights, fractional pools) run on Decimal in a high-precision context that
rounds toward zero, so no intermediate result can round a share up.
"""

import math
from collections.abc import Iterable, Mapping
from decimal import Context, Decimal, InvalidOperation, ROUND_DOWN
from typing import TYPE_CHECKING

from loguru import logger

from referral_rewards.config.constants import REWARD_DECIMAL_PRECISION, SQRT_SCALE
from referral_rewards.models import (
    ExclusionEntry,
    ExclusionMap,
    RewardRow,
    build_exclusion_map,
)
from referral_rewards.utils.exceptions import InvalidAmountError
from referral_rewards.utils.security import mask_address
from referral_rewards.validators.unified import validate_wallet_address

if TYPE_CHECKING:
    from loguru import Logger


REWARD_CONTEXT = Context(prec=REWARD_DECIMAL_PRECISION, rounding=ROUND_DOWN)

ExclusionInput = ExclusionMap | Iterable[str | ExclusionEntry] | None


def to_amount(value: Decimal | int | str, name: str = "amount") -> Decimal:
    """
    Convert an amount to Decimal and reject negative or non-finite values.

    Args:
        value: Amount as Decimal, int or decimal string
        name: Field name for error messages

    Raises:
        InvalidAmountError: If the amount is negative or not a number
    """
    if isinstance(value, float):
        raise InvalidAmountError(f"{name} must not be a float: {value!r}")
    try:
        amount = Decimal(value) if not isinstance(value, Decimal) else value
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(f"Invalid {name}: {value!r}") from None
    if not amount.is_finite():
        raise InvalidAmountError(f"Invalid {name}: {value!r}")
    if amount < 0:
        raise InvalidAmountError(f"{name} must not be negative: {value}")
    return amount


def floor_to_int(value: Decimal) -> int:
    """Round a non-negative Decimal down to an int."""
    return int(value.to_integral_value(rounding=ROUND_DOWN))


def as_exact(amount: Decimal) -> int | Decimal:
    """
    Return integral amounts as int.

    Int arithmetic is exact at any size; only fractional amounts are left
    to REWARD_CONTEXT.
    """
    if amount == amount.to_integral_value():
        return int(amount)
    return amount


def exact_sum(values: Iterable[int | Decimal]) -> int | Decimal:
    """Sum weights, exactly when they are all ints."""
    values = list(values)
    if all(isinstance(value, int) for value in values):
        return sum(values)
    total = Decimal(0)
    for value in values:
        total = REWARD_CONTEXT.add(total, Decimal(value))
    return total


def proportional_share(
    pool: int | Decimal,
    weight: int | Decimal,
    total: int | Decimal,
) -> int:
    """
    floor(pool * weight / total) without intermediate rounding up.

    All-int arguments are computed exactly with integer division. Returns
    0 when total is zero.
    """
    if total == 0:
        return 0
    if isinstance(pool, int) and isinstance(weight, int) and isinstance(total, int):
        return pool * weight // total
    numerator = REWARD_CONTEXT.multiply(Decimal(pool), Decimal(weight))
    return floor_to_int(REWARD_CONTEXT.divide(numerator, Decimal(total)))


def sqrt_down(value: int) -> Decimal:
    """
    Square root of a non-negative integer, truncated to SQRT_SCALE digits.

    Uses integer square root on a scaled value, so the result is exact
    to the last kept digit and always rounded toward zero.

    Examples:
        >>> sqrt_down(16)
        Decimal('4.000000000000000000')
        >>> str(sqrt_down(2))
        '1.414213562373095048'
    """
    if value < 0:
        raise InvalidAmountError(f"Cannot take square root of {value}")
    scaled = math.isqrt(value * 10 ** (2 * SQRT_SCALE))
    return REWARD_CONTEXT.scaleb(Decimal(scaled), -SQRT_SCALE)


def cap_from_proportion(
    pool: Decimal | int | str,
    maximum_proportion: Decimal | str,
) -> Decimal:
    """
    Per-referrer cap as a proportion of the pool.

    Example:
        >>> cap_from_proportion(1000, "0.4")
        Decimal('400.0')
    """
    pool_amount = to_amount(pool, "reward pool")
    proportion = to_amount(maximum_proportion, "maximum reward proportion")
    if proportion > 1:
        raise InvalidAmountError(
            f"maximum reward proportion must be at most 1: {maximum_proportion}"
        )
    return REWARD_CONTEXT.multiply(pool_amount, proportion)


def normalize_exclusions(excluded: ExclusionInput) -> dict[str, ExclusionEntry]:
    """
    Key exclusions by lowercase address.

    Accepts an exclusion mapping, or an iterable of addresses and
    ExclusionEntry objects.
    """
    if not excluded:
        return {}
    if isinstance(excluded, Mapping):
        return {key.lower(): entry for key, entry in excluded.items()}
    return build_exclusion_map(
        item if isinstance(item, ExclusionEntry)
        else ExclusionEntry(referrer_id=item)
        for item in excluded
    )


def find_excluded_referrers(
    referrer_ids: Iterable[str],
    exclusions: ExclusionMap,
    log: "Logger" = logger,
) -> set[str]:
    """
    Return referrers present in the exclusion list and report each one.

    Exclusion entries matching no referrer are ignored.
    """
    excluded = set()
    for referrer_id in referrer_ids:
        entry = exclusions.get(referrer_id.lower())
        if entry is None:
            continue
        excluded.add(referrer_id)
        if entry.should_warn:
            log.warning(
                f"Flagged address {referrer_id} is a referrer, "
                f"they will be excluded from campaign rewards."
            )
        else:
            log.info(
                f"Excluded referrer {mask_address(referrer_id)} KPIs are ignored "
                f"for reward calculations."
            )
    return excluded


def validate_kpis(referrer_kpis: Mapping[str, int]) -> None:
    """
    Raises:
        InvalidAmountError: If any KPI is negative
    """
    for referrer_id, kpi in referrer_kpis.items():
        if kpi < 0:
            raise InvalidAmountError(
                f"Negative KPI {kpi} for referrer {referrer_id}"
            )


def total_distributed(rewards: Iterable[RewardRow]) -> int:
    """Sum of reward amounts."""
    return sum(row.amount for row in rewards)


def to_payout_lists(rewards: Iterable[RewardRow]) -> tuple[list[str], list[str]]:
    """
    Build the users/amounts lists handed to the batch-transaction builder.

    Zero rewards are dropped.

    Raises:
        ValueError: If a rewarded referrer is not a valid address
        InvalidAmountError: If an amount is negative
    """
    users: list[str] = []
    amounts: list[str] = []
    for row in rewards:
        amount = row.amount
        if amount < 0:
            raise InvalidAmountError(
                f"Negative reward {amount} for {row.referrer_id}"
            )
        if amount == 0:
            continue
        is_valid, error = validate_wallet_address(row.referrer_id)
        if not is_valid:
            raise ValueError(f"{error}: {row.referrer_id!r}")
        users.append(row.referrer_id)
        amounts.append(str(amount))
    return users, amounts
