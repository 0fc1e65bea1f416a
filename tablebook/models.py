from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base

RESERVATION_STATUSES = ("pending", "confirmed", "completed", "cancelled")
# Statuses that still hold a table
ACTIVE_STATUSES = ("pending", "confirmed")
TABLE_SHAPES = ("circle", "square", "rectangle")


class Restaurant(Base):
    """A restaurant and its weekly opening hours"""
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(64), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    # {"monday": {"open": "11:00", "close": "22:00", "closed": false}, ...}
    opening_hours = Column(JSON, nullable=True)
    dining_duration_minutes = Column(Integer, nullable=True)  # overrides the default buffer
    created_at = Column(DateTime, default=datetime.utcnow)

    tables = relationship("RestaurantTable", back_populates="restaurant")
    reservations = relationship("Reservation", back_populates="restaurant")


class RestaurantTable(Base):
    """Bookable tables of a restaurant"""
    __tablename__ = "restaurant_tables"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "table_number", name="uq_table_number_per_restaurant"),
        CheckConstraint("capacity > 0", name="ck_table_capacity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    table_number = Column(Integer, nullable=False)
    capacity = Column(Integer, nullable=False)
    shape = Column(String(20), nullable=False, default="square")  # circle, square, rectangle
    is_available_for_booking = Column(Boolean, nullable=False, default=True)
    position_x = Column(Integer, nullable=True)
    position_y = Column(Integer, nullable=True)
    is_archived = Column(Boolean, nullable=False, default=False)
    # Bumped by every booking on this table; writers compare-and-swap on it
    booking_version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    restaurant = relationship("Restaurant", back_populates="tables")
    reservations = relationship("Reservation", back_populates="table")


class Reservation(Base):
    """Customer reservations"""
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("party_size > 0", name="ck_reservation_party_size_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    table_id = Column(Integer, ForeignKey("restaurant_tables.id"), nullable=False, index=True)
    customer_id = Column(String(64), nullable=False, index=True)
    reservation_date = Column(Date, nullable=False, index=True)
    reservation_time = Column(String(5), nullable=False)  # HH:MM format
    party_size = Column(Integer, nullable=False)
    special_requests = Column(Text)
    status = Column(String(20), nullable=False, default="pending")  # pending, confirmed, completed, cancelled
    confirmation_code = Column(String(16), nullable=False, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    restaurant = relationship("Restaurant", back_populates="reservations")
    table = relationship("RestaurantTable", back_populates="reservations")


class Notification(Base):
    """Events addressed to a user (owner or customer)"""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(String(64), nullable=False, index=True)
    type = Column(String(40), nullable=False)  # reservation_new, reservation_confirmed, reservation_cancelled
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    related_id = Column(String(64))
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
