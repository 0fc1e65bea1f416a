"""Wall-clock helpers: "HH:MM" strings, minutes of day and weekday names.

Restaurants run on local wall-clock time, so reservation times are kept as
"HH:MM" strings and compared as minutes since midnight.
"""

import re
from datetime import date, datetime

from .errors import InvalidFormat

MINUTES_PER_DAY = 24 * 60

# Index matches date.isoweekday() % 7, i.e. Sunday first
WEEKDAYS = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def time_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight, in [0, 1439]."""
    match = _TIME_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidFormat(f"Invalid time {value!r}. Use HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidFormat(f"Invalid time {value!r}. Use HH:MM")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as zero-padded "HH:MM".

    No wrap-around is applied: callers must pass a non-negative value, and a
    value of 1440 or more renders past midnight (1500 -> "25:00").
    """
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time(value: str) -> str:
    """Canonical "HH:MM" form ("9:05" -> "09:05")."""
    return minutes_to_time(time_to_minutes(value))


def parse_date(value) -> date:
    """Accept a date or an ISO "YYYY-MM-DD" string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidFormat(f"Invalid date {value!r}. Use YYYY-MM-DD") from None


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.isoweekday() % 7]


def format_display_date(day: date) -> str:
    """Short human date used in notification text, e.g. "Sun, Jun 9, 2024"."""
    return f"{day:%a}, {day:%b} {day.day}, {day.year}"
