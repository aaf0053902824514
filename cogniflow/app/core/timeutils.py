"""
Time helpers.

Business dates are stored as naive UTC datetimes so that PostgreSQL and SQLite
behave the same. Aware inputs are converted to UTC and stripped.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to naive UTC (naive values are assumed UTC)."""
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def month_start(dt: datetime) -> datetime:
    """First instant of the month containing dt."""
    return dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def add_months(dt: datetime, months: int) -> datetime:
    """Shift a month-start datetime by a number of months (may be negative)."""
    index = dt.year * 12 + (dt.month - 1) + months
    return dt.replace(year=index // 12, month=index % 12 + 1)


def quarter_bounds(dt: datetime) -> tuple:
    """(start, end_exclusive) of the calendar quarter containing dt, plus quarter number."""
    quarter = (dt.month - 1) // 3 + 1
    start = month_start(dt).replace(month=(quarter - 1) * 3 + 1)
    return start, add_months(start, 3), quarter
