import logging

from .database import SessionLocal, init_db
from .models import Restaurant, RestaurantTable

logger = logging.getLogger(__name__)

DEMO_OWNER_ID = "owner-demo"

WEEKDAY_HOURS = {"open": "11:00", "close": "22:00", "closed": False}
DEMO_OPENING_HOURS = {
    "monday": WEEKDAY_HOURS,
    "tuesday": WEEKDAY_HOURS,
    "wednesday": WEEKDAY_HOURS,
    "thursday": WEEKDAY_HOURS,
    "friday": {"open": "11:00", "close": "23:00", "closed": False},
    "saturday": {"open": "11:00", "close": "23:00", "closed": False},
    "sunday": {"open": "00:00", "close": "00:00", "closed": True},
}

# (table_number, capacity, shape, x, y)
DEMO_TABLES = [
    (1, 2, "circle", 40, 40),
    (2, 2, "circle", 140, 40),
    (3, 4, "square", 240, 40),
    (4, 4, "square", 40, 160),
    (5, 6, "rectangle", 140, 160),
    (6, 8, "rectangle", 260, 160),
]


def init_database(session_factory=SessionLocal):
    """Create the schema and a demo restaurant with its floor plan"""
    init_db(bind=session_factory.kw.get("bind"))

    db = session_factory()
    try:
        # Check if data already exists
        if db.query(Restaurant).first():
            logger.info("Database already initialized. Skipping seed data")
            return

        restaurant = Restaurant(
            owner_id=DEMO_OWNER_ID,
            name="Lakeview Gardens",
            opening_hours=DEMO_OPENING_HOURS,
        )
        db.add(restaurant)
        db.flush()

        for number, capacity, shape, x, y in DEMO_TABLES:
            db.add(
                RestaurantTable(
                    restaurant_id=restaurant.id,
                    table_number=number,
                    capacity=capacity,
                    shape=shape,
                    position_x=x,
                    position_y=y,
                )
            )
        db.commit()
        logger.info(f"Seeded restaurant {restaurant.id} with {len(DEMO_TABLES)} tables")
    except Exception:
        db.rollback()
        logger.exception("Error initializing database")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_database()
