"""
KPI models.

KPI rows are produced by per-protocol calculators; metrics are derived
from them by the aggregator.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class KpiRow:
    """
    KPI value of one referred user.

    ``kpi`` is a decimal string holding an integer (e.g. a transaction
    count) so large values survive serialization.
    """

    referrer_id: str
    user_address: str
    kpi: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KpiRow":
        """
        Build a row from a camelCase or snake_case mapping.

        Raises:
            KeyError: If a required field is missing
        """
        referrer_id = data.get("referrerId", data.get("referrer_id"))
        user_address = data.get("userAddress", data.get("user_address"))
        kpi = data["kpi"]
        if referrer_id is None:
            raise KeyError("referrerId")
        if user_address is None:
            raise KeyError("userAddress")
        return cls(
            referrer_id=str(referrer_id),
            user_address=str(user_address),
            kpi=str(kpi),
        )


@dataclass(frozen=True)
class ReferrerMetrics:
    """Per-referrer KPI sums and referral counts."""

    referrer_kpis: dict[str, int] = field(default_factory=dict)
    referrer_referrals: dict[str, int] = field(default_factory=dict)

    @property
    def total_kpi(self) -> int:
        return sum(self.referrer_kpis.values())


@dataclass(frozen=True)
class UserMetrics:
    """Per-user KPI sums and the referrer each user was attributed to."""

    user_kpis: dict[str, int] = field(default_factory=dict)
    user_referrers: dict[str, str] = field(default_factory=dict)

    @property
    def total_kpi(self) -> int:
        return sum(self.user_kpis.values())
