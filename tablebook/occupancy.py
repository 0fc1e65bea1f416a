from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, Optional

from .clock import MINUTES_PER_DAY, minutes_to_time, time_to_minutes

DEFAULT_BUFFER_MINUTES = 120


@dataclass
class Occupancy:
    occupied: bool = False
    next_available: Optional[str] = None


def compute_occupancy(
    table_ids: Iterable[int],
    reservations: Iterable,
    target_time: str,
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
    day: Optional[date] = None,
) -> Dict[int, Occupancy]:
    """Mark which tables are taken at ``target_time``.

    Each reservation needs ``table_id``, ``reservation_time`` and ``status``. A
    table is occupied when a non-cancelled reservation on it starts within
    ``buffer_minutes`` of the target, either side. Its next free time is that
    reservation's start plus the buffer; with several conflicts the latest
    start wins.

    Without ``day`` all reservations are taken to be on the target's date.
    With it, each reservation's ``reservation_date`` places it relative to
    ``day``, so bookings late on the previous evening or just after midnight
    count too. Their times are then shifted by whole days and
    ``next_available`` may read past "24:00".
    """
    target = time_to_minutes(target_time)
    latest_conflict: Dict[int, int] = {}

    for reservation in reservations:
        if reservation.status == "cancelled":
            continue
        start = time_to_minutes(reservation.reservation_time)
        if day is not None:
            start += (reservation.reservation_date - day).days * MINUTES_PER_DAY
        if abs(start - target) > buffer_minutes:
            continue
        current = latest_conflict.get(reservation.table_id)
        if current is None or start > current:
            latest_conflict[reservation.table_id] = start

    result = {}
    for table_id in table_ids:
        start = latest_conflict.get(table_id)
        if start is None:
            result[table_id] = Occupancy()
        else:
            # start >= target - buffer, so this is never negative
            result[table_id] = Occupancy(
                occupied=True, next_available=minutes_to_time(start + buffer_minutes)
            )
    return result
