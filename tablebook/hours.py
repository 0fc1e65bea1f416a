import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Mapping, Optional, Tuple

from .clock import time_to_minutes, weekday_name
from .errors import InvalidFormat

logger = logging.getLogger(__name__)

CLOSED_ON_DAY = "closed_on_day"
OUTSIDE_HOURS = "outside_hours"
MISSING_SCHEDULE = "missing_schedule"


@dataclass
class HoursResult:
    is_open: bool
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    reason: Optional[str] = None
    message: Optional[str] = None


def _is_schedule(opening_hours) -> bool:
    """A mapping of weekday name to a day entry mapping (or None) with HH:MM times."""
    if not isinstance(opening_hours, Mapping):
        return False
    for entry in opening_hours.values():
        if entry is None:
            continue
        if not isinstance(entry, Mapping):
            return False
        for key in ("open", "close"):
            value = entry.get(key)
            if not value:
                continue
            try:
                time_to_minutes(value)
            except InvalidFormat:
                return False
    return True


def _day_window(entry) -> Optional[Tuple[int, int, str, str]]:
    if not entry or entry.get("closed"):
        return None
    open_str, close_str = entry.get("open"), entry.get("close")
    if not open_str or not close_str:
        return None
    return time_to_minutes(open_str), time_to_minutes(close_str), open_str, close_str


def check_hours(
    opening_hours: Optional[Mapping[str, Mapping]],
    day: date,
    time: str,
    allow_overnight: bool = False,
) -> HoursResult:
    """Decide whether a restaurant with this weekly schedule is open at ``day`` ``time``.

    The window is inclusive at both ends. A close time at or before the open
    time only spills into the next morning when ``allow_overnight`` is set;
    otherwise such a day never matches.
    """
    target = time_to_minutes(time)

    if opening_hours and not _is_schedule(opening_hours):
        logger.warning(f"Malformed opening hours ignored: {opening_hours!r}")
        opening_hours = None

    if not opening_hours:
        return HoursResult(
            is_open=False,
            reason=MISSING_SCHEDULE,
            message="Unable to verify restaurant hours",
        )

    if allow_overnight:
        previous = _day_window(opening_hours.get(weekday_name(day - timedelta(days=1))))
        if previous and previous[1] <= previous[0] and target <= previous[1]:
            return HoursResult(is_open=True, opening_time=previous[2], closing_time=previous[3])

    day_name = weekday_name(day)
    window = _day_window(opening_hours.get(day_name))
    if window is None:
        return HoursResult(
            is_open=False,
            reason=CLOSED_ON_DAY,
            message=f"Restaurant is closed on {day_name.capitalize()}s",
        )

    open_minutes, close_minutes, open_str, close_str = window
    if allow_overnight and close_minutes <= open_minutes:
        inside = target >= open_minutes
    else:
        inside = open_minutes <= target <= close_minutes

    if not inside:
        return HoursResult(
            is_open=False,
            opening_time=open_str,
            closing_time=close_str,
            reason=OUTSIDE_HOURS,
            message=f"Restaurant is open from {open_str} to {close_str}",
        )
    return HoursResult(is_open=True, opening_time=open_str, closing_time=close_str)
