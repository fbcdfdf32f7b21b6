"""
Unit tests for KPI aggregation.

Tests cover:
- Per-referrer sums and referral counts
- Per-user sums
- Row parsing from camelCase and snake_case mappings
- Rejection of negative and non-integer KPIs
"""

import pytest

from referral_rewards.models import KpiRow
from referral_rewards.services.kpi import (
    get_referrer_metrics_from_kpi,
    get_user_metrics_from_kpi,
    parse_kpi,
)
from referral_rewards.utils.exceptions import InvalidAmountError

REFERRER_A = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
REFERRER_B = "0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"
USER_1 = "0x1111111111111111111111111111111111111111"
USER_2 = "0x2222222222222222222222222222222222222222"
USER_3 = "0x3333333333333333333333333333333333333333"


class TestReferrerMetrics:
    """Test per-referrer aggregation."""

    def test_sums_and_counts(self):
        """KPIs are summed and every row counts as one referral."""
        rows = [
            KpiRow(REFERRER_A, USER_1, "10"),
            KpiRow(REFERRER_B, USER_2, "5"),
            KpiRow(REFERRER_A, USER_3, "7"),
        ]

        metrics = get_referrer_metrics_from_kpi(rows)

        assert metrics.referrer_kpis == {REFERRER_A: 17, REFERRER_B: 5}
        assert metrics.referrer_referrals == {REFERRER_A: 2, REFERRER_B: 1}
        assert metrics.total_kpi == 22

    def test_first_seen_order(self):
        """Referrers keep the order they first appear in."""
        rows = [
            KpiRow(REFERRER_B, USER_1, "1"),
            KpiRow(REFERRER_A, USER_2, "100"),
        ]

        metrics = get_referrer_metrics_from_kpi(rows)

        assert list(metrics.referrer_kpis) == [REFERRER_B, REFERRER_A]

    def test_zero_kpi_still_counts_referral(self):
        """A referred user with no activity is still a referral."""
        metrics = get_referrer_metrics_from_kpi([KpiRow(REFERRER_A, USER_1, "0")])

        assert metrics.referrer_kpis == {REFERRER_A: 0}
        assert metrics.referrer_referrals == {REFERRER_A: 1}

    def test_accepts_mappings(self):
        """Rows may be camelCase or snake_case dicts."""
        rows = [
            {"referrerId": REFERRER_A, "userAddress": USER_1, "kpi": "3"},
            {"referrer_id": REFERRER_A, "user_address": USER_2, "kpi": 4},
        ]

        metrics = get_referrer_metrics_from_kpi(rows)

        assert metrics.referrer_kpis == {REFERRER_A: 7}

    def test_large_values_are_exact(self):
        """KPIs beyond float precision are summed exactly."""
        big = "123456789012345678901234567890"
        rows = [KpiRow(REFERRER_A, USER_1, big), KpiRow(REFERRER_A, USER_2, "1")]

        metrics = get_referrer_metrics_from_kpi(rows)

        assert metrics.referrer_kpis[REFERRER_A] == int(big) + 1

    def test_empty(self):
        """No rows, no referrers."""
        metrics = get_referrer_metrics_from_kpi([])

        assert metrics.referrer_kpis == {}
        assert metrics.total_kpi == 0


class TestUserMetrics:
    """Test per-user aggregation."""

    def test_sums_per_user(self):
        """Rows of the same user are summed; the first referrer is kept."""
        rows = [
            KpiRow(REFERRER_A, USER_1, "2"),
            KpiRow(REFERRER_B, USER_1, "3"),
            KpiRow(REFERRER_B, USER_2, "4"),
        ]

        metrics = get_user_metrics_from_kpi(rows)

        assert metrics.user_kpis == {USER_1: 5, USER_2: 4}
        assert metrics.user_referrers == {USER_1: REFERRER_A, USER_2: REFERRER_B}
        assert metrics.total_kpi == 9


class TestKpiValidation:
    """Test KPI parsing."""

    @pytest.mark.parametrize("value", ["-1", "1.5", "abc", "", "NaN"])
    def test_invalid_kpi_rejected(self, value):
        """Negative, fractional and non-numeric KPIs are fatal."""
        with pytest.raises(InvalidAmountError):
            parse_kpi(KpiRow(REFERRER_A, USER_1, value))

    def test_integral_decimal_string_accepted(self):
        """Decimal strings with a zero fraction are integers."""
        assert parse_kpi(KpiRow(REFERRER_A, USER_1, "5.0")) == 5

    def test_aggregation_fails_on_bad_row(self):
        """One bad row fails the whole aggregation."""
        rows = [
            KpiRow(REFERRER_A, USER_1, "1"),
            KpiRow(REFERRER_B, USER_2, "-3"),
        ]

        with pytest.raises(InvalidAmountError, match="Negative KPI"):
            get_referrer_metrics_from_kpi(rows)

    def test_missing_field(self):
        """Mappings without a referrer are rejected."""
        with pytest.raises(KeyError):
            KpiRow.from_dict({"userAddress": USER_1, "kpi": "1"})
