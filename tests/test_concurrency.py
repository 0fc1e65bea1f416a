"""Concurrent booking attempts against a real file-backed database."""

import threading
from concurrent.futures import ThreadPoolExecutor
from itertools import combinations

import pytest
from sqlalchemy.orm import sessionmaker

from tablebook.auth import Principal
from tablebook.clock import time_to_minutes
from tablebook.config import Settings
from tablebook.database import Base, init_db, make_engine
from tablebook.errors import StoreConflict, TableOccupied
from tablebook.models import Reservation, RestaurantTable
from tablebook.services.booking_service import BookingService

from conftest import MONDAY, seed_restaurant

ATTEMPTS = ["19:00", "19:15", "19:30", "19:45", "20:00", "20:15", "20:30", "20:45"]


@pytest.fixture
def file_session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'race.db'}")
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


def test_only_one_of_many_racing_bookings_wins(file_session_factory):
    setup = file_session_factory()
    restaurant = seed_restaurant(setup, tables={7: 4})
    restaurant_id = restaurant.id
    table_id = setup.query(RestaurantTable.id).filter(RestaurantTable.restaurant_id == restaurant_id).scalar()
    setup.close()

    start = threading.Barrier(len(ATTEMPTS))
    settings = Settings(booking_max_retries=5)

    def attempt(index):
        session = file_session_factory()
        try:
            start.wait()
            service = BookingService(session, settings=settings)
            guest = Principal(user_id=f"customer-{index}")
            try:
                return service.book(guest, restaurant_id, table_id, MONDAY, ATTEMPTS[index], 2)
            except (TableOccupied, StoreConflict) as exc:
                return exc
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(ATTEMPTS)) as pool:
        outcomes = list(pool.map(attempt, range(len(ATTEMPTS))))

    winners = [o for o in outcomes if not isinstance(o, Exception)]
    assert len(winners) == 1
    assert all(isinstance(o, (TableOccupied, StoreConflict)) for o in outcomes if o not in winners)

    check = file_session_factory()
    try:
        stored = (
            check.query(Reservation)
            .filter(Reservation.table_id == table_id, Reservation.status != "cancelled")
            .all()
        )
    finally:
        check.close()
    assert len(stored) == 1
    assert stored[0].confirmation_code == winners[0].confirmation_code


def test_stored_reservations_never_overlap(file_session_factory):
    setup = file_session_factory()
    restaurant = seed_restaurant(setup, tables={1: 4, 2: 4})
    restaurant_id = restaurant.id
    table_ids = [row.id for row in setup.query(RestaurantTable.id).all()]
    setup.close()

    requests = [(table_ids[i % 2], f"{h:02d}:{m:02d}") for i, (h, m) in enumerate(
        (h, m) for h in range(11, 22) for m in (0, 20, 40)
    )]
    settings = Settings(booking_max_retries=5)

    def attempt(index):
        table_id, time = requests[index]
        session = file_session_factory()
        try:
            BookingService(session, settings=settings).book(
                Principal(user_id=f"customer-{index}"), restaurant_id, table_id, MONDAY, time, 2
            )
        except (TableOccupied, StoreConflict):
            pass
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=6) as pool:
        list(pool.map(attempt, range(len(requests))))

    check = file_session_factory()
    try:
        stored = check.query(Reservation).filter(Reservation.status != "cancelled").all()
    finally:
        check.close()

    assert stored
    for a, b in combinations(stored, 2):
        if a.table_id == b.table_id and a.reservation_date == b.reservation_date:
            gap = abs(time_to_minutes(a.reservation_time) - time_to_minutes(b.reservation_time))
            assert gap > 120, (a.reservation_time, b.reservation_time)
