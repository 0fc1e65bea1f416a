import logging
import secrets
import string
from typing import Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import Principal, require_principal
from ..clock import normalize_time, parse_date
from ..config import Settings, settings as default_settings
from ..errors import (
    CapacityExceeded,
    InvalidFormat,
    ReservationError,
    StoreConflict,
    TableNotFound,
    TableOccupied,
)
from ..models import Reservation, Restaurant, RestaurantTable
from ..notify import dispatch, new_reservation_event
from .availability_service import AvailabilityService

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8

# Driver messages that mean "another writer got there first"
_LOCK_MARKERS = ("locked", "deadlock", "could not serialize", "busy")


def generate_confirmation_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def _is_lock_error(exc: OperationalError) -> bool:
    text = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in text for marker in _LOCK_MARKERS)


class BookingService:
    """Turns a table choice into a pending reservation.

    The table row is locked (where the backend supports ``FOR UPDATE``) and its
    ``booking_version`` captured before availability is recomputed; the insert
    only commits if a compare-and-swap on that version still succeeds. A lost
    race surfaces as ``StoreConflict`` and the whole flow is rerun, so the
    retry sees the winning reservation and reports the table as occupied.
    """

    def __init__(self, db: Session, notifier=None, settings: Optional[Settings] = None):
        self.db = db
        self.notifier = notifier
        self.settings = settings or default_settings
        self.availability = AvailabilityService(db, self.settings)

    def book(
        self,
        principal: Optional[Principal],
        restaurant_id: int,
        table_id: int,
        date,
        time: str,
        party_size: int,
        special_requests: Optional[str] = None,
    ) -> schemas.BookedReservation:
        principal = require_principal(principal)
        day = parse_date(date)
        time = normalize_time(time)
        if not isinstance(party_size, int) or isinstance(party_size, bool) or party_size < 1:
            raise InvalidFormat("Party size must be a positive whole number")

        attempts = max(1, self.settings.booking_max_retries)
        for attempt in range(1, attempts + 1):
            try:
                reservation, restaurant, entry = self._attempt(
                    principal, restaurant_id, table_id, day, time, party_size, special_requests
                )
                break
            except StoreConflict:
                if attempt == attempts:
                    logger.warning(
                        f"Booking table {table_id} gave up after {attempts} conflicting attempts"
                    )
                    raise
                logger.info(f"Booking conflict on table {table_id}, retry {attempt}/{attempts - 1}")

        logger.info(
            f"Reservation {reservation.id} ({reservation.confirmation_code}) created: "
            f"restaurant={restaurant_id} table={table_id} {day} {time} party={party_size}"
        )
        dispatch(self.notifier, **new_reservation_event(reservation, restaurant))

        return schemas.BookedReservation(
            **schemas.Reservation.model_validate(reservation).model_dump(),
            restaurant_name=restaurant.name,
            table_number=entry.table_number,
        )

    def _attempt(
        self, principal, restaurant_id, table_id, day, time, party_size, special_requests
    ) -> Tuple[Reservation, Restaurant, schemas.AvailabilityEntry]:
        try:
            restaurant = self.availability.get_restaurant(restaurant_id)
            self.availability.ensure_open(restaurant, day, time)

            expected_version = self._lock_table(restaurant_id, table_id)
            entries = self.availability.get_available_tables(restaurant_id, day, time)
            entry = next((e for e in entries if e.id == table_id), None)
            if entry is None or expected_version is None:
                raise TableNotFound(table_id)
            if entry.capacity < party_size:
                raise CapacityExceeded(required=party_size, actual=entry.capacity)
            if entry.is_occupied:
                raise TableOccupied(entry.next_available_time)

            self._claim_table(table_id, expected_version)
            reservation = Reservation(
                restaurant_id=restaurant_id,
                table_id=table_id,
                customer_id=principal.user_id,
                reservation_date=day,
                reservation_time=time,
                party_size=party_size,
                special_requests=special_requests,
                status="pending",
                confirmation_code=generate_confirmation_code(),
            )
            self.db.add(reservation)
            self.db.commit()
        except ReservationError:
            self.db.rollback()
            raise
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(f"Reservation insert rejected by the store: {exc.orig}")
            raise StoreConflict() from exc
        except OperationalError as exc:
            self.db.rollback()
            if not _is_lock_error(exc):
                raise
            raise StoreConflict() from exc
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(reservation)
        return reservation, restaurant, entry

    def _lock_table(self, restaurant_id: int, table_id: int) -> Optional[int]:
        table = (
            self.db.query(RestaurantTable)
            .filter(RestaurantTable.id == table_id, RestaurantTable.restaurant_id == restaurant_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        return None if table is None else table.booking_version

    def _claim_table(self, table_id: int, expected_version: int) -> None:
        result = self.db.execute(
            update(RestaurantTable)
            .where(
                RestaurantTable.id == table_id,
                RestaurantTable.booking_version == expected_version,
            )
            .values(booking_version=expected_version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise StoreConflict("Table was booked by another guest in the meantime")
