"""Error taxonomy of the booking engine.

Every failure a caller can act on is a ``ReservationError`` subclass carrying a
stable ``code``, the HTTP status the API answers with, and structured details
(for example the next free time of an occupied table).
"""

from typing import Any, Dict, Optional


class ReservationError(Exception):
    code = "reservation_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def details(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.code, "message": self.message, **self.details()}


class InvalidFormat(ReservationError):
    code = "invalid_format"
    status_code = 400


class NotAuthenticated(ReservationError):
    code = "not_authenticated"
    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class Forbidden(ReservationError):
    code = "forbidden"
    status_code = 403


class RestaurantNotFound(ReservationError):
    code = "restaurant_not_found"
    status_code = 404

    def __init__(self, restaurant_id: int):
        super().__init__(f"Restaurant {restaurant_id} not found")
        self.restaurant_id = restaurant_id


class TableNotFound(ReservationError):
    code = "table_not_found"
    status_code = 404

    def __init__(self, table_id: int):
        super().__init__("Selected table not found")
        self.table_id = table_id

    def details(self):
        return {"table_id": self.table_id}


class ReservationNotFound(ReservationError):
    code = "reservation_not_found"
    status_code = 404

    def __init__(self, reservation_id: int):
        super().__init__(f"Reservation {reservation_id} not found")
        self.reservation_id = reservation_id


class NotificationNotFound(ReservationError):
    code = "notification_not_found"
    status_code = 404

    def __init__(self, notification_id: int):
        super().__init__(f"Notification {notification_id} not found")
        self.notification_id = notification_id


class RestaurantClosed(ReservationError):
    code = "restaurant_closed"
    status_code = 409

    def __init__(
        self,
        reason: str,
        message: Optional[str] = None,
        opening_time: Optional[str] = None,
        closing_time: Optional[str] = None,
    ):
        super().__init__(message or "Restaurant is closed at this time")
        self.reason = reason
        self.opening_time = opening_time
        self.closing_time = closing_time

    def details(self):
        return {
            "reason": self.reason,
            "opening_time": self.opening_time,
            "closing_time": self.closing_time,
        }


class TableOccupied(ReservationError):
    code = "table_occupied"
    status_code = 409

    def __init__(self, next_available_time: Optional[str]):
        super().__init__(
            f"This table is already reserved. Next available at {next_available_time}"
        )
        self.next_available_time = next_available_time

    def details(self):
        return {"next_available_time": self.next_available_time}


class CapacityExceeded(ReservationError):
    code = "capacity_exceeded"
    status_code = 409

    def __init__(self, required: int, actual: int):
        super().__init__(f"This table only seats {actual} people")
        self.required = required
        self.actual = actual

    def details(self):
        return {"required": self.required, "actual": self.actual}


class InvalidTransition(ReservationError):
    code = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, requested: str, message: Optional[str] = None):
        super().__init__(
            message or f"Cannot change a {current} reservation to {requested}"
        )
        self.current = current
        self.requested = requested

    def details(self):
        return {"current_status": self.current, "requested_status": self.requested}


class TableInUse(ReservationError):
    code = "table_in_use"
    status_code = 409

    def __init__(self, table_id: int, active_reservations: int):
        super().__init__(
            f"Table has {active_reservations} active reservation(s) and cannot be deleted"
        )
        self.table_id = table_id
        self.active_reservations = active_reservations

    def details(self):
        return {"table_id": self.table_id, "active_reservations": self.active_reservations}


class DuplicateTableNumber(ReservationError):
    code = "duplicate_table_number"
    status_code = 409

    def __init__(self, table_number: int):
        super().__init__(f"Table number {table_number} already exists in this restaurant")
        self.table_number = table_number

    def details(self):
        return {"table_number": self.table_number}


class StoreConflict(ReservationError):
    """The store rejected a concurrent write; rerun the whole operation."""

    code = "store_conflict"
    status_code = 409

    def __init__(self, message: str = "The reservation state changed, please try again"):
        super().__init__(message)

    def details(self):
        return {"retryable": True}
