"""KPI aggregation services."""

from .aggregator import (
    get_referrer_metrics_from_kpi,
    get_user_metrics_from_kpi,
    parse_kpi,
)

__all__ = [
    "get_referrer_metrics_from_kpi",
    "get_user_metrics_from_kpi",
    "parse_kpi",
]
