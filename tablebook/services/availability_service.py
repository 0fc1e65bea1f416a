import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from .. import schemas
from ..clock import normalize_time, parse_date
from ..config import Settings, settings as default_settings
from ..errors import RestaurantClosed, RestaurantNotFound
from ..hours import HoursResult, check_hours
from ..models import Reservation, Restaurant, RestaurantTable
from ..occupancy import compute_occupancy

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Read side of booking: opening hours and per-table occupancy.

    Every call reads the store afresh; results are never cached.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings

    def get_restaurant(self, restaurant_id: int) -> Restaurant:
        restaurant = (
            self.db.query(Restaurant)
            .filter(Restaurant.id == restaurant_id)
            .populate_existing()
            .first()
        )
        if restaurant is None:
            raise RestaurantNotFound(restaurant_id)
        return restaurant

    def buffer_minutes(self, restaurant: Restaurant) -> int:
        return restaurant.dining_duration_minutes or self.settings.occupancy_buffer_minutes

    def check_hours(self, restaurant_id: int, day, time: str) -> HoursResult:
        restaurant = self.get_restaurant(restaurant_id)
        return self._check_restaurant_hours(restaurant, parse_date(day), time)

    def ensure_open(self, restaurant: Restaurant, day: date, time: str) -> HoursResult:
        hours = self._check_restaurant_hours(restaurant, day, time)
        if not hours.is_open:
            raise RestaurantClosed(
                hours.reason,
                message=hours.message,
                opening_time=hours.opening_time,
                closing_time=hours.closing_time,
            )
        return hours

    def get_available_tables(self, restaurant_id: int, day, time: str) -> List[schemas.AvailabilityEntry]:
        """Bookable tables of a restaurant annotated with occupancy at ``day`` ``time``."""
        day = parse_date(day)
        time = normalize_time(time)
        restaurant = self.get_restaurant(restaurant_id)
        self.ensure_open(restaurant, day, time)

        tables = (
            self.db.query(RestaurantTable)
            .filter(
                RestaurantTable.restaurant_id == restaurant_id,
                RestaurantTable.is_available_for_booking == True,  # noqa: E712
                RestaurantTable.is_archived == False,  # noqa: E712
            )
            .order_by(RestaurantTable.table_number)
            .populate_existing()
            .all()
        )
        reservations = self._reservations_around(restaurant_id, day)
        occupancy = compute_occupancy(
            [t.id for t in tables], reservations, time, self.buffer_minutes(restaurant), day=day
        )

        entries = []
        for table in tables:
            state = occupancy[table.id]
            entry = schemas.AvailabilityEntry.model_validate(table)
            entry.is_occupied = state.occupied
            entry.next_available_time = state.next_available
            entries.append(entry)

        logger.debug(
            "Availability restaurant=%s %s %s: %d tables, %d occupied",
            restaurant_id, day, time, len(entries), sum(e.is_occupied for e in entries),
        )
        return entries

    def _reservations_around(self, restaurant_id: int, day: date) -> List[Reservation]:
        """Reservations from the day before through the day after ``day``.

        A buffer reaches across midnight, so the neighbouring dates can hold
        conflicts too.
        """
        return (
            self.db.query(Reservation)
            .filter(
                Reservation.restaurant_id == restaurant_id,
                Reservation.reservation_date.between(day - timedelta(days=1), day + timedelta(days=1)),
                Reservation.status != "cancelled",
            )
            .populate_existing()
            .all()
        )

    def _check_restaurant_hours(self, restaurant: Restaurant, day: date, time: str) -> HoursResult:
        return check_hours(
            restaurant.opening_hours, day, time, allow_overnight=self.settings.allow_overnight_hours
        )
