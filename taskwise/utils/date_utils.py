"""
Centralized date/time utilities for the user's timezone
All calendar-day comparisons should go through this module
"""

from datetime import date, datetime, timezone, timedelta
from typing import List, Optional, Union
from taskwise.config.settings import settings
from taskwise.config.constants import WEEK_STARTS_ON

# Singleton timezone object
USER_TIMEZONE = timezone(timedelta(hours=settings.USER_TIMEZONE_OFFSET))

DateLike = Union[date, datetime]


def get_current_datetime() -> datetime:
    """
    Get current datetime in the user's timezone

    Returns:
        Current datetime object with the user's timezone
    """
    return datetime.now(USER_TIMEZONE)


def get_current_date() -> date:
    """Get today's calendar date in the user's timezone"""
    return get_current_datetime().date()


def to_aware(value: datetime) -> datetime:
    """
    Attach UTC to naive datetimes coming back from the store

    Args:
        value: Datetime, naive or aware

    Returns:
        Timezone-aware datetime
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def calendar_day(value: DateLike) -> date:
    """
    Calendar day of a date or datetime as seen in the user's timezone

    Args:
        value: date or datetime

    Returns:
        date (time-of-day dropped)
    """
    if isinstance(value, datetime):
        return to_aware(value).astimezone(USER_TIMEZONE).date()
    return value


def same_calendar_day(first: DateLike, second: DateLike) -> bool:
    """Check whether two moments fall on the same calendar day"""
    return calendar_day(first) == calendar_day(second)


def seconds_between(start: datetime, end: datetime) -> int:
    """
    Whole seconds from start to end, floored

    Args:
        start: Interval start
        end: Interval end

    Returns:
        Number of whole seconds (negative if end precedes start)
    """
    return (to_aware(end) - to_aware(start)) // timedelta(seconds=1)


def format_deadline(value: DateLike) -> str:
    """Format a due date the way the priority prompt expects it (YYYY-MM-DD)"""
    return calendar_day(value).strftime("%Y-%m-%d")


def start_of_week(day: DateLike) -> date:
    """First day (Monday) of the week containing day"""
    d = calendar_day(day)
    return d - timedelta(days=(d.weekday() - WEEK_STARTS_ON) % 7)


def days_of_week(day: DateLike) -> List[date]:
    """The seven calendar days of the week containing day"""
    first = start_of_week(day)
    return [first + timedelta(days=i) for i in range(7)]


def weeks_of_month(day: DateLike) -> List[date]:
    """
    Start days of every week that overlaps the month containing day

    Args:
        day: Any day of the month

    Returns:
        List of week start dates, the first one possibly in the previous month
    """
    d = calendar_day(day)
    first_of_month = d.replace(day=1)
    if d.month == 12:
        first_of_next = date(d.year + 1, 1, 1)
    else:
        first_of_next = date(d.year, d.month + 1, 1)

    weeks = []
    week = start_of_week(first_of_month)
    while week < first_of_next:
        weeks.append(week)
        week += timedelta(days=7)
    return weeks


def parse_day(value: Optional[str]) -> Optional[date]:
    """
    Parse a YYYY-MM-DD or ISO 8601 string into a calendar day

    Args:
        value: Date string

    Returns:
        date or None if the string is empty or malformed
    """
    if not value:
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return calendar_day(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        return None
