from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, StrictInt

ReservationStatus = Literal["pending", "confirmed", "completed", "cancelled"]
TableShape = Literal["circle", "square", "rectangle"]


class HoursResponse(BaseModel):
    is_open: bool
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    reason: Optional[str] = None
    message: Optional[str] = None

    class Config:
        from_attributes = True


class TableBase(BaseModel):
    table_number: int = Field(gt=0)
    capacity: int = Field(gt=0)
    shape: TableShape = "square"
    is_available_for_booking: bool = True
    position_x: Optional[int] = None
    position_y: Optional[int] = None


class TableCreate(TableBase):
    pass


class TableUpdate(BaseModel):
    table_number: Optional[int] = Field(default=None, gt=0)
    capacity: Optional[int] = Field(default=None, gt=0)
    shape: Optional[TableShape] = None
    is_available_for_booking: Optional[bool] = None
    position_x: Optional[int] = None
    position_y: Optional[int] = None


class Table(TableBase):
    id: int
    restaurant_id: int

    class Config:
        from_attributes = True


class AvailabilityEntry(Table):
    is_occupied: bool = False
    next_available_time: Optional[str] = None


class ReservationCreate(BaseModel):
    restaurant_id: int
    table_id: int
    date: str
    time: str
    party_size: StrictInt = Field(gt=0)
    special_requests: Optional[str] = None


class Reservation(BaseModel):
    id: int
    restaurant_id: int
    table_id: int
    customer_id: str
    reservation_date: date
    reservation_time: str
    party_size: int
    special_requests: Optional[str] = None
    status: ReservationStatus
    confirmation_code: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookedReservation(Reservation):
    restaurant_name: str
    table_number: int


class ReservationDetail(Reservation):
    table_number: Optional[int] = None
    table_capacity: Optional[int] = None


class StatusUpdate(BaseModel):
    status: ReservationStatus


class ReservationStats(BaseModel):
    total_reservations: int
    upcoming_reservations: int
    today_reservations: int
    this_month_reservations: int
    pending_reservations: int


class Notification(BaseModel):
    id: int
    recipient_id: str
    type: str
    title: str
    message: str
    related_id: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
