from __future__ import annotations

import logging
from typing import Optional

from . import models
from .clock import format_display_date

logger = logging.getLogger(__name__)

RESERVATION_NEW = "reservation_new"
RESERVATION_CONFIRMED = "reservation_confirmed"
RESERVATION_CANCELLED = "reservation_cancelled"


class NotificationSink:
    """Stores notification events for their recipients.

    Writes go through a session of their own so they never share a
    transaction with the booking that triggered them.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def send(
        self,
        recipient_id: str,
        type: str,
        title: str,
        message: str,
        related_id: Optional[str] = None,
    ) -> bool:
        """Best-effort: never raises; returns False if storing fails."""
        db = self.session_factory()
        try:
            db.add(
                models.Notification(
                    recipient_id=recipient_id,
                    type=type,
                    title=title,
                    message=message,
                    related_id=related_id,
                    is_read=False,
                )
            )
            db.commit()
            logger.info("Notification %s sent to %s", type, recipient_id)
            return True
        except Exception:
            db.rollback()
            logger.exception("Error creating %s notification for %s", type, recipient_id)
            return False
        finally:
            db.close()


class DeferredNotifier:
    """Queues sends on FastAPI background tasks so they run after the response."""

    def __init__(self, background_tasks, sink: NotificationSink):
        self.background_tasks = background_tasks
        self.sink = sink

    def send(self, recipient_id, type, title, message, related_id=None):
        self.background_tasks.add_task(
            self.sink.send, recipient_id, type, title, message, related_id
        )
        return True


def dispatch(notifier, **event) -> bool:
    """Hand an event to ``notifier``; failures are logged, never propagated."""
    if notifier is None:
        return False
    try:
        return bool(notifier.send(**event))
    except Exception:
        logger.exception("Notification dispatch failed: %s", event.get("type"))
        return False


def new_reservation_event(reservation: models.Reservation, restaurant: models.Restaurant) -> dict:
    guests = reservation.party_size
    return dict(
        recipient_id=restaurant.owner_id,
        type=RESERVATION_NEW,
        title="New Reservation",
        message=(
            f"New reservation for {guests} {'guest' if guests == 1 else 'guests'} "
            f"at {restaurant.name} on {format_display_date(reservation.reservation_date)} "
            f"at {reservation.reservation_time}"
        ),
        related_id=str(reservation.id),
    )


def confirmed_event(reservation: models.Reservation, restaurant: models.Restaurant) -> dict:
    return dict(
        recipient_id=reservation.customer_id,
        type=RESERVATION_CONFIRMED,
        title="Reservation Confirmed",
        message=(
            f"Your reservation at {restaurant.name} on "
            f"{format_display_date(reservation.reservation_date)} at {reservation.reservation_time} "
            f"has been confirmed. Confirmation code: {reservation.confirmation_code}"
        ),
        related_id=str(reservation.id),
    )


def cancelled_event(reservation: models.Reservation, restaurant: models.Restaurant) -> dict:
    return dict(
        recipient_id=reservation.customer_id,
        type=RESERVATION_CANCELLED,
        title="Reservation Cancelled",
        message=(
            f"Your reservation at {restaurant.name} on "
            f"{format_display_date(reservation.reservation_date)} at {reservation.reservation_time} "
            f"has been cancelled."
        ),
        related_id=str(reservation.id),
    )
