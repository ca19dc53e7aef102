"""
Calendar helpers shared by every dashboard.

Event dates travel as ``YYYY-MM-DD`` strings. They are always split into their
components and rebuilt as a local ``date``. They are never parsed as an
instant, which would move the calendar day near midnight under a UTC offset.
"""

import re
from datetime import date, datetime, time
from typing import Optional, Union

DateLike = Union[str, date, datetime, None]

_DATE_RE = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?\s*$")


def parse_date_string(value: Optional[str]) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` (optionally followed by a time part) into a date.

    Returns None for anything that does not name a real calendar day.
    """
    if not isinstance(value, str):
        return None
    match = _DATE_RE.match(value)
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def calendar_day(value: DateLike) -> Optional[date]:
    """Reduce any supported date representation to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date_string(value)


def same_day(a: DateLike, b: Union[date, datetime]) -> bool:
    """True when ``a`` and ``b`` fall on the same calendar day.

    Time of day is ignored. A datetime is compared on its own wall-clock
    fields, whatever its tzinfo. Malformed input never matches.
    """
    left = calendar_day(a)
    right = calendar_day(b)
    if left is None or right is None:
        return False
    return (left.year, left.month, left.day) == (right.year, right.month, right.day)


def in_month(value: DateLike, year: int, month: int) -> bool:
    day = calendar_day(value)
    return day is not None and day.year == year and day.month == month


def _parse_time(value: Optional[str]) -> Optional[time]:
    if not value:
        return time(0, 0)
    parts = value.split(":")
    if len(parts) < 2:
        return None
    try:
        return time(int(parts[0]), int(parts[1]))
    except ValueError:
        return None


def event_starts_at(date_value: DateLike, time_value: Optional[str]) -> Optional[datetime]:
    """Combine an event's date and ``HH:MM`` time into a naive local datetime.

    A missing time means midnight. Either part being malformed yields None.
    """
    day = calendar_day(date_value)
    if day is None:
        return None
    start = _parse_time(time_value)
    if start is None:
        return None
    return datetime.combine(day, start)


def to_12_hour(time24: Optional[str]) -> str:
    """Format ``HH:MM`` as a 12-hour label, e.g. ``13:05`` -> ``1:05 PM``."""
    if not time24:
        return ""
    parts = time24.split(":")
    if len(parts) < 2:
        return ""
    hour_str, minute = parts[0], parts[1]
    try:
        hour = int(hour_str)
    except ValueError:
        return ""
    if not 0 <= hour <= 23:
        return ""
    suffix = "PM" if hour >= 12 else "AM"
    hour = hour % 12
    if hour == 0:
        hour = 12
    return f"{hour}:{minute} {suffix}"
