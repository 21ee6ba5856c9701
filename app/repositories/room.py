import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.room import Room, UPDATABLE_FIELDS
from app.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class RoomRepository(BaseRepository[Room]):
    def list_all(self, db: Session) -> List[Room]:
        """Every room ordered by room number (string comparison of the store)."""
        return db.query(self.model)\
            .order_by(self.model.room_number.asc(), self.model.building_name.asc(), self.model.id.asc())\
            .all()

    def create_if_absent(
        self,
        db: Session,
        building_name: str,
        floor: int,
        room_number: str,
        status: str = "ready",
        memo: str = "",
        is_deposit_paid: bool = False,
    ) -> bool:
        """Insert a room unless its (building_name, room_number) already exists."""
        row = {
            "building_name": building_name,
            "floor": floor,
            "room_number": room_number,
            "status": status,
            "memo": memo,
            "is_deposit_paid": is_deposit_paid,
        }
        return self.create_many_if_absent(db, [row]) == 1

    def create_many_if_absent(self, db: Session, rows: Iterable[Dict[str, Any]]) -> int:
        inserted = 0
        try:
            for row in rows:
                if self._insert_ignoring_duplicate(db, row):
                    inserted += 1
            db.commit()
        except Exception:
            db.rollback()
            raise
        return inserted

    def _insert_ignoring_duplicate(self, db: Session, row: Dict[str, Any]) -> bool:
        insert = _UPSERT_DIALECTS.get(db.get_bind().dialect.name)
        if insert is not None:
            stmt = insert(self.model.__table__).values(**row).on_conflict_do_nothing(
                index_elements=["building_name", "room_number"]
            )
            return db.execute(stmt).rowcount == 1

        # Dialects without ON CONFLICT: let the unique constraint decide inside a savepoint
        try:
            with db.begin_nested():
                db.add(self.model(**row))
            return True
        except IntegrityError:
            logger.debug("Room %s-%s already exists", row["building_name"], row["room_number"])
            return False

    def apply_partial_update(self, db: Session, room_id: int, fields: Dict[str, Any]) -> Optional[Room]:
        """
        Change only the named columns of one room and return the committed row.
        Returns None when no room has this id.
        """
        if not fields:
            raise ValueError("apply_partial_update needs at least one field")
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")

        stmt = update(self.model)\
            .where(self.model.id == room_id)\
            .values(**fields)\
            .returning(self.model)

        try:
            room = db.scalars(stmt).first()
            db.commit()
        except Exception:
            db.rollback()
            raise
        return room

room_repository = RoomRepository(Room)
