"""Shared fixtures: an in-memory database seeded with one restaurant."""

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tablebook.auth import ADMIN, CUSTOMER, OWNER, Principal
from tablebook.database import Base, init_db
from tablebook.models import Restaurant, RestaurantTable

OPEN_DAY = {"open": "11:00", "close": "22:00", "closed": False}
OPENING_HOURS = {
    "monday": OPEN_DAY,
    "tuesday": OPEN_DAY,
    "wednesday": OPEN_DAY,
    "thursday": OPEN_DAY,
    "friday": OPEN_DAY,
    "saturday": OPEN_DAY,
    "sunday": {"open": "11:00", "close": "22:00", "closed": True},
}

MONDAY = date(2024, 6, 10)
SUNDAY = date(2024, 6, 9)

LATE_DAY = {"open": "18:00", "close": "02:00", "closed": False}
# Evening service every day until 02:00 the next morning
LATE_HOURS = {day: LATE_DAY for day in OPENING_HOURS}

# table_number -> capacity
TABLES = {1: 2, 2: 2, 3: 4, 4: 4, 5: 6}


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def send(self, recipient_id, type, title, message, related_id=None):
        self.events.append(
            dict(recipient_id=recipient_id, type=type, title=title, message=message, related_id=related_id)
        )
        return True


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def seed_restaurant(
    session, owner_id="owner-1", name="Lakeview Gardens", tables=TABLES, opening_hours=OPENING_HOURS
):
    restaurant = Restaurant(owner_id=owner_id, name=name, opening_hours=opening_hours)
    session.add(restaurant)
    session.flush()
    for number, capacity in tables.items():
        session.add(
            RestaurantTable(
                restaurant_id=restaurant.id,
                table_number=number,
                capacity=capacity,
                shape="square",
            )
        )
    session.commit()
    return restaurant


@pytest.fixture
def restaurant(db):
    return seed_restaurant(db)


@pytest.fixture
def tables(db, restaurant):
    """Table rows of the seeded restaurant keyed by table number."""
    rows = db.query(RestaurantTable).filter(RestaurantTable.restaurant_id == restaurant.id).all()
    return {t.table_number: t for t in rows}


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def customer():
    return Principal(user_id="customer-1", role=CUSTOMER)


@pytest.fixture
def other_customer():
    return Principal(user_id="customer-2", role=CUSTOMER)


@pytest.fixture
def owner():
    return Principal(user_id="owner-1", role=OWNER)


@pytest.fixture
def admin():
    return Principal(user_id="admin-1", role=ADMIN)
