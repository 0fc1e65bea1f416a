import logging
from datetime import date, datetime
from typing import Callable, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import Principal, can_manage, ensure_can_manage, require_principal
from ..clock import parse_date
from ..errors import (
    Forbidden,
    InvalidFormat,
    InvalidTransition,
    ReservationNotFound,
    RestaurantNotFound,
    StoreConflict,
)
from ..models import RESERVATION_STATUSES, Reservation, Restaurant, RestaurantTable
from ..notify import cancelled_event, confirmed_event, dispatch

logger = logging.getLogger(__name__)

# pending -> confirmed -> completed, and pending|confirmed -> cancelled
TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}
TERMINAL_STATUSES = ("completed", "cancelled")

LIST_FILTERS = ("upcoming", "past", "cancelled")


class ReservationService:
    def __init__(
        self,
        db: Session,
        notifier=None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.db = db
        self.notifier = notifier
        self.today = today or date.today

    def get_reservation(self, reservation_id: int) -> Reservation:
        reservation = (
            self.db.query(Reservation)
            .filter(Reservation.id == reservation_id)
            .populate_existing()
            .first()
        )
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        return reservation

    def update_reservation_status(
        self, principal: Optional[Principal], reservation_id: int, new_status: str
    ) -> Reservation:
        """Move a reservation along its lifecycle and notify the customer.

        Owners of the restaurant and admins may make any allowed transition.
        A customer may only cancel their own reservation, and only while its
        date is today or later.
        """
        principal = require_principal(principal)
        if new_status not in RESERVATION_STATUSES:
            raise InvalidFormat(f"Unknown reservation status {new_status!r}")

        reservation = self.get_reservation(reservation_id)
        restaurant = reservation.restaurant
        current = reservation.status

        is_manager = can_manage(principal, restaurant)
        if not is_manager and reservation.customer_id != principal.user_id:
            raise Forbidden("You cannot change this reservation")

        if new_status not in TRANSITIONS.get(current, set()):
            raise InvalidTransition(current, new_status)

        if not is_manager:
            if new_status != "cancelled":
                raise Forbidden("Customers can only cancel their reservations")
            if reservation.reservation_date < self.today():
                raise InvalidTransition(
                    current, new_status, message="Past reservations can no longer be cancelled"
                )

        result = self.db.execute(
            update(Reservation)
            .where(Reservation.id == reservation_id, Reservation.status == current)
            .values(status=new_status, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise StoreConflict("The reservation was updated by someone else, please reload")
        self.db.commit()
        self.db.refresh(reservation)

        logger.info(
            f"Reservation {reservation_id} {current} -> {new_status} by {principal.role} {principal.user_id}"
        )
        if new_status == "confirmed":
            dispatch(self.notifier, **confirmed_event(reservation, restaurant))
        elif new_status == "cancelled":
            dispatch(self.notifier, **cancelled_event(reservation, restaurant))
        return reservation

    def cancel_reservation(self, principal: Optional[Principal], reservation_id: int) -> Reservation:
        return self.update_reservation_status(principal, reservation_id, "cancelled")

    def list_customer_reservations(
        self, principal: Optional[Principal], filter: Optional[str] = None
    ) -> List[schemas.ReservationDetail]:
        """The caller's own reservations, newest date first."""
        principal = require_principal(principal)
        if filter is not None and filter not in LIST_FILTERS:
            raise InvalidFormat(f"Unknown filter {filter!r}. Use one of {', '.join(LIST_FILTERS)}")

        today = self.today()
        query = self.db.query(Reservation).filter(Reservation.customer_id == principal.user_id)
        if filter == "upcoming":
            query = query.filter(
                Reservation.reservation_date >= today, Reservation.status != "cancelled"
            )
        elif filter == "past":
            query = query.filter(Reservation.reservation_date < today)
        elif filter == "cancelled":
            query = query.filter(Reservation.status == "cancelled")

        reservations = query.order_by(
            Reservation.reservation_date.desc(), Reservation.reservation_time.desc()
        ).all()
        return [self._detail(r) for r in reservations]

    def list_restaurant_reservations(
        self,
        principal: Optional[Principal],
        restaurant_id: int,
        status: Optional[str] = None,
        day=None,
        limit: Optional[int] = None,
    ) -> List[schemas.ReservationDetail]:
        ensure_can_manage(principal, self._get_restaurant(restaurant_id))
        query = self.db.query(Reservation).filter(Reservation.restaurant_id == restaurant_id)
        if status:
            if status not in RESERVATION_STATUSES:
                raise InvalidFormat(f"Unknown reservation status {status!r}")
            query = query.filter(Reservation.status == status)
        if day is not None:
            query = query.filter(Reservation.reservation_date == parse_date(day))
        query = query.order_by(Reservation.reservation_date.desc(), Reservation.reservation_time.asc())
        if limit:
            query = query.limit(limit)
        return [self._detail(r) for r in query.all()]

    def reservation_stats(self, principal: Optional[Principal], restaurant_id: int) -> schemas.ReservationStats:
        ensure_can_manage(principal, self._get_restaurant(restaurant_id))
        rows = (
            self.db.query(Reservation.reservation_date, Reservation.status)
            .filter(Reservation.restaurant_id == restaurant_id)
            .all()
        )
        today = self.today()
        return schemas.ReservationStats(
            total_reservations=len(rows),
            upcoming_reservations=sum(1 for d, s in rows if d >= today and s != "cancelled"),
            today_reservations=sum(1 for d, s in rows if d == today and s != "cancelled"),
            this_month_reservations=sum(
                1 for d, _ in rows if (d.year, d.month) == (today.year, today.month)
            ),
            pending_reservations=sum(1 for _, s in rows if s == "pending"),
        )

    def _get_restaurant(self, restaurant_id: int) -> Restaurant:
        restaurant = self.db.get(Restaurant, restaurant_id)
        if restaurant is None:
            raise RestaurantNotFound(restaurant_id)
        return restaurant

    def _detail(self, reservation: Reservation) -> schemas.ReservationDetail:
        table: Optional[RestaurantTable] = reservation.table
        return schemas.ReservationDetail(
            **schemas.Reservation.model_validate(reservation).model_dump(),
            table_number=table.table_number if table else None,
            table_capacity=table.capacity if table else None,
        )
