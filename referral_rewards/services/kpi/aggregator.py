"""
KPI aggregator.

Groups KPI rows by referrer or by user. No exclusion filtering happens
here, totals stay auditable independent of the exclusion list.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from loguru import logger

from referral_rewards.models import KpiRow, ReferrerMetrics, UserMetrics
from referral_rewards.utils.exceptions import InvalidAmountError
from referral_rewards.validators.unified import parse_integer_amount


def parse_kpi(row: KpiRow) -> int:
    """
    Parse a row's KPI string into a non-negative int.

    Raises:
        InvalidAmountError: If the KPI is not a non-negative integer
    """
    try:
        kpi = parse_integer_amount(row.kpi)
    except ValueError as e:
        raise InvalidAmountError(
            f"Invalid KPI for referrer {row.referrer_id}, "
            f"user {row.user_address}: {e}"
        ) from e
    if kpi < 0:
        raise InvalidAmountError(
            f"Negative KPI {kpi} for referrer {row.referrer_id}, "
            f"user {row.user_address}"
        )
    return kpi


def _as_rows(rows: Iterable[KpiRow | Mapping[str, Any]]) -> list[KpiRow]:
    return [
        row if isinstance(row, KpiRow) else KpiRow.from_dict(row)
        for row in rows
    ]


def get_referrer_metrics_from_kpi(
    rows: Iterable[KpiRow | Mapping[str, Any]],
) -> ReferrerMetrics:
    """
    Sum KPIs and count referrals per referrer.

    Args:
        rows: KPI rows, one per referred user

    Returns:
        ReferrerMetrics with referrers in first-seen order

    Raises:
        InvalidAmountError: If any KPI is negative or not an integer
    """
    referrer_kpis: dict[str, int] = {}
    referrer_referrals: dict[str, int] = {}

    for row in _as_rows(rows):
        kpi = parse_kpi(row)
        referrer_kpis[row.referrer_id] = referrer_kpis.get(row.referrer_id, 0) + kpi
        referrer_referrals[row.referrer_id] = (
            referrer_referrals.get(row.referrer_id, 0) + 1
        )

    metrics = ReferrerMetrics(
        referrer_kpis=referrer_kpis,
        referrer_referrals=referrer_referrals,
    )
    logger.debug(
        f"[KPI] {len(referrer_kpis)} referrers, total KPI {metrics.total_kpi}"
    )
    return metrics


def get_user_metrics_from_kpi(
    rows: Iterable[KpiRow | Mapping[str, Any]],
) -> UserMetrics:
    """
    Sum KPIs per referred user.

    A user's referrer is taken from their first row.

    Raises:
        InvalidAmountError: If any KPI is negative or not an integer
    """
    user_kpis: dict[str, int] = {}
    user_referrers: dict[str, str] = {}

    for row in _as_rows(rows):
        kpi = parse_kpi(row)
        user_kpis[row.user_address] = user_kpis.get(row.user_address, 0) + kpi
        user_referrers.setdefault(row.user_address, row.referrer_id)

    return UserMetrics(user_kpis=user_kpis, user_referrers=user_referrers)
