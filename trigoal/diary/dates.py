"""Diary-day arithmetic.

A diary-day runs from 04:00 to 03:59 the next calendar day, so staying up
past midnight still counts toward the evening before.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional, Union

DAY_START_HOUR = 4
DATE_FORMAT = "%Y-%m-%d"


def to_local(instant: datetime) -> datetime:
    """Return the local wall-clock view of an instant.

    Naive datetimes are taken to be local already.
    """
    if instant.tzinfo is None:
        return instant
    return instant.astimezone()


def diary_date_of(instant: datetime) -> str:
    """
    Map an instant to the diary-day it belongs to.

    Args:
        instant: Any datetime, aware or local naive

    Returns:
        Diary date as YYYY-MM-DD

    Example:
        2024-01-02 02:30 -> "2024-01-01"
        2024-01-02 04:00 -> "2024-01-02"
    """
    local = to_local(instant)
    day = local.date()
    if local.hour < DAY_START_HOUR:
        day -= timedelta(days=1)
    return day.strftime(DATE_FORMAT)


def current_diary_date(now: Optional[datetime] = None) -> str:
    """Diary date for the current moment."""
    return diary_date_of(now or datetime.now())


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD diary date, raising ValueError if malformed."""
    return datetime.strptime(value, DATE_FORMAT).date()


def shift_date(value: str, days: int) -> str:
    """Move a diary date by a number of days."""
    return (parse_date(value) + timedelta(days=days)).strftime(DATE_FORMAT)


def parse_time_of_day(value: Union[str, time]) -> time:
    """Parse "HH:MM" into a time, raising ValueError if out of range."""
    if isinstance(value, time):
        return value
    hours, minutes = (int(part) for part in value.split(":"))
    return time(hour=hours, minute=minutes)


def resolve_manual_bedtime(diary_date: str, time_of_day: Union[str, time]) -> datetime:
    """
    Place a bedtime picked as a time of day onto an absolute local instant.

    Times before 04:00 physically happen on the calendar day after the diary
    date (going to bed at 02:00 on diary-day Jan 1 is Jan 2, 02:00).

    Args:
        diary_date: Diary date currently displayed (YYYY-MM-DD)
        time_of_day: Chosen time as datetime.time or "HH:MM"

    Returns:
        Naive local datetime
    """
    chosen = parse_time_of_day(time_of_day)
    day = parse_date(diary_date)
    if chosen.hour < DAY_START_HOUR:
        day += timedelta(days=1)
    return datetime.combine(day, chosen)
