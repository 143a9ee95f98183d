"""
Scheduled Messages - Utility Functions
======================================

Calendar arithmetic for repeating messages.
"""

import calendar
from datetime import datetime, timedelta

REPEAT_NONE = "none"
REPEAT_DAILY = "daily"
REPEAT_WEEKLY = "weekly"
REPEAT_MONTHLY = "monthly"

REPEATING = (REPEAT_DAILY, REPEAT_WEEKLY, REPEAT_MONTHLY)


def add_months(dt: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's length."""
    years, month_index = divmod(dt.month - 1 + months, 12)
    year = dt.year + years
    month = month_index + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def shift(dt: datetime, repeat: str, periods: int) -> datetime:
    """Move ``dt`` forward by ``periods`` repeat periods."""
    if repeat == REPEAT_DAILY:
        return dt + timedelta(days=periods)
    if repeat == REPEAT_WEEKLY:
        return dt + timedelta(weeks=periods)
    if repeat == REPEAT_MONTHLY:
        return add_months(dt, periods)
    raise ValueError(f"Not a repeating schedule: {repeat!r}")


def advance_next_run(next_run: datetime, repeat: str, now: datetime) -> datetime:
    """
    First occurrence of the schedule strictly after ``now``.

    Periods are counted from the original ``next_run`` so monthly
    schedules anchored on the 31st come back to the 31st after a short
    month.

    Examples:
        daily, next_run three days ago -> within (now, now + 1 day]
        monthly, 2024-01-31, now 2024-02-10 -> 2024-02-29
    """
    periods = 1
    candidate = shift(next_run, repeat, periods)
    while candidate <= now:
        periods += 1
        candidate = shift(next_run, repeat, periods)
    return candidate
