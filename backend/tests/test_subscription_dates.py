"""Tests for renewal date arithmetic."""

from datetime import UTC, datetime

import pytest

from app.services.subscription_dates import add_months, next_renewal_date


class TestAddMonths:
    def test_simple(self):
        assert add_months(datetime(2025, 1, 15, tzinfo=UTC), 1) == datetime(2025, 2, 15, tzinfo=UTC)

    def test_clamps_to_month_end(self):
        assert add_months(datetime(2025, 1, 31, tzinfo=UTC), 1) == datetime(2025, 2, 28, tzinfo=UTC)

    def test_leap_year(self):
        assert add_months(datetime(2024, 1, 31, tzinfo=UTC), 1) == datetime(2024, 2, 29, tzinfo=UTC)

    def test_crosses_year(self):
        assert add_months(datetime(2025, 11, 30, tzinfo=UTC), 3) == datetime(2026, 2, 28, tzinfo=UTC)

    def test_keeps_time_and_timezone(self):
        result = add_months(datetime(2025, 3, 10, 14, 5, 30, tzinfo=UTC), 12)
        assert result == datetime(2026, 3, 10, 14, 5, 30, tzinfo=UTC)
        assert result.tzinfo is UTC


class TestNextRenewalDate:
    @pytest.mark.parametrize(
        "period,expected",
        [
            (1, datetime(2026, 2, 15, 9, 30, tzinfo=UTC)),
            (3, datetime(2026, 4, 15, 9, 30, tzinfo=UTC)),
            (12, datetime(2027, 1, 15, 9, 30, tzinfo=UTC)),
        ],
    )
    def test_one_period_after_now(self, period, expected):
        assert next_renewal_date(datetime(2026, 1, 15, 9, 30, tzinfo=UTC), period) == expected

    @pytest.mark.parametrize("period", [0, -1])
    def test_rejects_non_positive_period(self, period):
        with pytest.raises(ValueError, match="at least one month"):
            next_renewal_date(datetime(2026, 1, 15, tzinfo=UTC), period)
