"""Renewal date arithmetic."""

import calendar as cal
from datetime import datetime


def add_months(dt: datetime, months: int) -> datetime:
    """Add months to a datetime, clamping to last day of month."""
    month = dt.month - 1 + months
    year = dt.year + month // 12
    month = month % 12 + 1
    max_day = cal.monthrange(year, month)[1]
    day = min(dt.day, max_day)
    return dt.replace(year=year, month=month, day=day)


def next_renewal_date(now: datetime, period_months: int) -> datetime:
    """Renewal date one offer period after ``now``."""
    if period_months < 1:
        raise ValueError(f"Offer period must be at least one month, got {period_months}")
    return add_months(now, period_months)
