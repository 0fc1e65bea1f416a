import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import Principal, ensure_can_manage
from ..errors import DuplicateTableNumber, RestaurantNotFound, TableInUse, TableNotFound
from ..models import ACTIVE_STATUSES, Reservation, Restaurant, RestaurantTable

logger = logging.getLogger(__name__)


class TableService:
    """Owner-side table inventory.

    A table that still carries pending or confirmed reservations cannot be
    deleted. One with only past history is archived instead of removed so the
    history keeps its table reference.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_tables(self, restaurant_id: int) -> List[RestaurantTable]:
        self._get_restaurant(restaurant_id)
        return (
            self.db.query(RestaurantTable)
            .filter(
                RestaurantTable.restaurant_id == restaurant_id,
                RestaurantTable.is_archived == False,  # noqa: E712
            )
            .order_by(RestaurantTable.table_number)
            .all()
        )

    def create_table(
        self, principal: Optional[Principal], restaurant_id: int, data: schemas.TableCreate
    ) -> RestaurantTable:
        ensure_can_manage(principal, self._get_restaurant(restaurant_id))
        self._ensure_number_free(restaurant_id, data.table_number)
        table = RestaurantTable(restaurant_id=restaurant_id, **data.model_dump())
        self.db.add(table)
        self._commit(data.table_number)
        self.db.refresh(table)
        logger.info(f"Table {table.table_number} created in restaurant {restaurant_id}")
        return table

    def update_table(
        self, principal: Optional[Principal], table_id: int, data: schemas.TableUpdate
    ) -> RestaurantTable:
        table = self._get_table(table_id)
        ensure_can_manage(principal, table.restaurant)
        changes = data.model_dump(exclude_unset=True)
        number = changes.get("table_number")
        if number is not None and number != table.table_number:
            self._ensure_number_free(table.restaurant_id, number)
        for key, value in changes.items():
            if value is not None or key in ("position_x", "position_y"):
                setattr(table, key, value)
        self._commit(table.table_number)
        self.db.refresh(table)
        return table

    def delete_table(self, principal: Optional[Principal], table_id: int) -> bool:
        """Delete or archive a table. Returns True if the row was removed."""
        table = self._get_table(table_id)
        ensure_can_manage(principal, table.restaurant)

        active = (
            self.db.query(Reservation)
            .filter(Reservation.table_id == table_id, Reservation.status.in_(ACTIVE_STATUSES))
            .count()
        )
        if active:
            raise TableInUse(table_id, active)

        has_history = (
            self.db.query(Reservation.id).filter(Reservation.table_id == table_id).first()
            is not None
        )
        if has_history:
            table.is_archived = True
            table.is_available_for_booking = False
            self.db.commit()
            logger.info(f"Table {table_id} archived (reservation history kept)")
            return False

        self.db.delete(table)
        self.db.commit()
        logger.info(f"Table {table_id} deleted")
        return True

    def _get_restaurant(self, restaurant_id: int) -> Restaurant:
        restaurant = self.db.get(Restaurant, restaurant_id)
        if restaurant is None:
            raise RestaurantNotFound(restaurant_id)
        return restaurant

    def _get_table(self, table_id: int) -> RestaurantTable:
        table = self.db.get(RestaurantTable, table_id)
        if table is None or table.is_archived:
            raise TableNotFound(table_id)
        return table

    def _ensure_number_free(self, restaurant_id: int, number: int) -> None:
        taken = (
            self.db.query(RestaurantTable.id)
            .filter(
                RestaurantTable.restaurant_id == restaurant_id,
                RestaurantTable.table_number == number,
            )
            .first()
        )
        if taken is not None:
            raise DuplicateTableNumber(number)

    def _commit(self, table_number: int) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateTableNumber(table_number) from exc
