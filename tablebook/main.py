from datetime import datetime
from typing import List, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import schemas
from .auth import Principal, get_principal
from .config import Settings, settings
from .database import SessionLocal, get_db, init_db
from .errors import ReservationError
from .init_db import init_database
from .notify import DeferredNotifier, NotificationSink
from .services.availability_service import AvailabilityService
from .services.booking_service import BookingService
from .services.notification_service import NotificationService
from .services.reservation_service import ReservationService
from .services.table_service import TableService

app = FastAPI(
    title="tablebook",
    description="Table availability and reservation booking engine",
    version="1.0.0",
)


def get_settings() -> Settings:
    return settings


def get_notification_sink() -> NotificationSink:
    return NotificationSink(SessionLocal)


def get_notifier(
    background_tasks: BackgroundTasks,
    sink: NotificationSink = Depends(get_notification_sink),
) -> DeferredNotifier:
    return DeferredNotifier(background_tasks, sink)


@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    init_db()
    if settings.seed_demo_data:
        init_database()


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@app.get("/api/restaurants/{restaurant_id}/hours", response_model=schemas.HoursResponse)
def check_hours(
    restaurant_id: int,
    date: str,
    time: str,
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    """Pre-validate a date/time before offering a time picker"""
    return AvailabilityService(db, app_settings).check_hours(restaurant_id, date, time)


@app.get(
    "/api/restaurants/{restaurant_id}/availability",
    response_model=List[schemas.AvailabilityEntry],
)
def get_available_tables(
    restaurant_id: int,
    date: str,
    time: str,
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    """Tables with live occupancy for the floor plan"""
    return AvailabilityService(db, app_settings).get_available_tables(restaurant_id, date, time)


@app.post("/api/reservations", response_model=schemas.BookedReservation, status_code=201)
def create_reservation(
    reservation_data: schemas.ReservationCreate,
    principal: Optional[Principal] = Depends(get_principal),
    db: Session = Depends(get_db),
    notifier: DeferredNotifier = Depends(get_notifier),
    app_settings: Settings = Depends(get_settings),
):
    """Book a table"""
    service = BookingService(db, notifier, app_settings)
    return service.book(
        principal,
        restaurant_id=reservation_data.restaurant_id,
        table_id=reservation_data.table_id,
        date=reservation_data.date,
        time=reservation_data.time,
        party_size=reservation_data.party_size,
        special_requests=reservation_data.special_requests,
    )


@app.get("/api/reservations", response_model=List[schemas.ReservationDetail])
def list_my_reservations(
    filter: Optional[str] = None,
    principal: Optional[Principal] = Depends(get_principal),
    db: Session = Depends(get_db),
):
    """The caller's reservations: upcoming, past, cancelled or all"""
    return ReservationService(db).list_customer_reservations(principal, filter)


@app.patch("/api/reservations/{reservation_id}/status", response_model=schemas.Reservation)
def update_reservation_status(
    reservation_id: int,
    update: schemas.StatusUpdate,
    principal: Optional[Principal] = Depends(get_principal),
    db: Session = Depends(get_db),
    notifier: DeferredNotifier = Depends(get_notifier),
):
    """Confirm, complete or cancel a reservation"""
    service = ReservationService(db, notifier)
    return service.update_reservation_status(principal, reservation_id, update.status)


@app.post("/api/reservations/{reservation_id}/cancel", response_model=schemas.Reservation)
def cancel_reservation(
    reservation_id: int,
    principal: Optional[Principal] = Depends(get_principal),
    db: Session = Depends(get_db),
    notifier: DeferredNotifier = Depends(get_notifier),
):
    """Cancel a reservation"""
    return ReservationService(db, notifier).cancel_reservation(principal, reservation_id)


@app.get(
    "/api/restaurants/{restaurant_id}/reservations",
    response_model=List[schemas.ReservationDetail],
)
def list_restaurant_reservations(
    restaurant_id: int,
    status: Optional[str] = None,
    date: Optional[str] = None,
    limit: Optional[int] = None,
    principal: Optional[Principal] = Depends(get_principal),
    db: Session = Depends(get_db),
):
    """Reservations of a restaurant (owner endpoint)"""
    return ReservationService(db).list_restaurant_reservations(
        principal, restaurant_id, status=status, day=date, limit=limit
    )


@app.get(
    "/api/restaurants/{restaurant_id}/reservation-stats",
    response_model=schemas.ReservationStats,
)
def reservation_stats(
    restaurant_id: int,
    principal: Optional[Principal] = Depends(get_principal),
    db: Session = Depends(get_db),
):
    """Reservation counters for the owner dashboard"""
    return ReservationService(db).reservation_stats(principal, restaurant_id)


@app.get("/api/restaurants/{restaurant_id}/tables", response_model=List[schemas.Table])
def get_tables(restaurant_id: int, db: Session = Depends(get_db)):
    """Get the tables of a restaurant"""
    return TableService(db).list_tables(restaurant_id)


@app.post("/api/restaurants/{restaurant_id}/tables", response_model=schemas.Table, status_code=201)
def create_table(
    restaurant_id: int,
    table_data: schemas.TableCreate,
    principal: Optional[Principal] = Depends(get_principal),
    db: Session = Depends(get_db),
):
    return TableService(db).create_table(principal, restaurant_id, table_data)


@app.patch("/api/tables/{table_id}", response_model=schemas.Table)
def update_table(
    table_id: int,
    table_data: schemas.TableUpdate,
    principal: Optional[Principal] = Depends(get_principal),
    db: Session = Depends(get_db),
):
    return TableService(db).update_table(principal, table_id, table_data)


@app.delete("/api/tables/{table_id}")
def delete_table(
    table_id: int,
    principal: Optional[Principal] = Depends(get_principal),
    db: Session = Depends(get_db),
):
    """Delete a table, or archive it if it has reservation history"""
    deleted = TableService(db).delete_table(principal, table_id)
    return {"success": True, "deleted": deleted, "archived": not deleted}


@app.get("/api/notifications", response_model=List[schemas.Notification])
def list_notifications(
    unread_only: bool = False,
    principal: Optional[Principal] = Depends(get_principal),
    db: Session = Depends(get_db),
):
    return NotificationService(db).list_notifications(principal, unread_only)


@app.post("/api/notifications/{notification_id}/read", response_model=schemas.Notification)
def mark_notification_read(
    notification_id: int,
    principal: Optional[Principal] = Depends(get_principal),
    db: Session = Depends(get_db),
):
    return NotificationService(db).mark_read(principal, notification_id)
