import asyncio
import enum
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import SessionLocal
from app.repositories.room import RoomRepository, room_repository
from app.schemas.room import RoomRead, RoomUpdate
from app.services.broadcast import BroadcastBus, broadcast_bus

logger = logging.getLogger(__name__)


class UpdateOutcome(str, enum.Enum):
    APPLIED = "applied"
    EMPTY = "empty"
    INVALID = "invalid"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class UpdateResult:
    outcome: UpdateOutcome
    room: Optional[RoomRead] = None
    detail: Optional[str] = None


class RecordLocks:
    """One asyncio.Lock per room id, dropped again once nobody holds or waits for it."""

    def __init__(self):
        self._locks: Dict[Any, asyncio.Lock] = {}
        self._holders: Dict[Any, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, key):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                self._locks.pop(key, None)

    def __len__(self):
        return len(self._locks)


class RoomService:
    def __init__(
        self,
        bus: BroadcastBus,
        repository: RoomRepository = room_repository,
        session_factory: Callable[[], Session] = SessionLocal,
        allowed_statuses: Optional[Sequence[str]] = None,
    ):
        self.bus = bus
        self.repository = repository
        self.session_factory = session_factory
        self.allowed_statuses = list(allowed_statuses or [])
        self.locks = RecordLocks()

    # =====================================================
    # SNAPSHOT
    # =====================================================

    def list_rooms(self, db: Session) -> List[RoomRead]:
        return [RoomRead.model_validate(room) for room in self.repository.list_all(db)]

    def _load_snapshot(self) -> List[Dict[str, Any]]:
        db = self.session_factory()
        try:
            return [room.model_dump() for room in self.list_rooms(db)]
        finally:
            db.close()

    async def load_snapshot_message(self) -> Dict[str, Any]:
        rooms = await run_in_threadpool(self._load_snapshot)
        return {"type": "initial_data", "data": rooms}

    # =====================================================
    # UPDATE
    # =====================================================

    def compile_update(self, payload: Any) -> RoomUpdate:
        """Validate a raw ``update_room`` payload. Raises ValidationError."""
        return RoomUpdate.model_validate(payload)

    def _apply(self, room_id: int, fields: Dict[str, Any]) -> Optional[RoomRead]:
        db = self.session_factory()
        try:
            room = self.repository.apply_partial_update(db, room_id, fields)
            return RoomRead.model_validate(room) if room is not None else None
        finally:
            db.close()

    async def update_room(self, payload: Any) -> UpdateResult:
        """
        Apply one sparse update and broadcast the committed room.

        Nothing is broadcast unless the store confirmed the commit. Updates for
        the same room are serialized here so that publish order follows commit
        order; updates for different rooms run independently.
        """
        try:
            request = self.compile_update(payload)
        except ValidationError as e:
            logger.info("Ignoring malformed update_room payload: %s", e.errors(include_url=False))
            return UpdateResult(UpdateOutcome.INVALID, detail="malformed payload")

        fields = request.changes()
        if not fields:
            logger.debug("Ignoring update_room for room %s without changes", request.id)
            return UpdateResult(UpdateOutcome.EMPTY)

        if self.allowed_statuses and "status" in fields and fields["status"] not in self.allowed_statuses:
            logger.info("Ignoring update_room for room %s: unknown status %r", request.id, fields["status"])
            return UpdateResult(UpdateOutcome.INVALID, detail=f"unknown status {fields['status']!r}")

        async with self.locks.hold(request.id):
            try:
                room = await run_in_threadpool(self._apply, request.id, fields)
            except SQLAlchemyError:
                logger.exception("Update of room %s failed", request.id)
                return UpdateResult(UpdateOutcome.FAILED, detail="store unavailable")

            if room is None:
                logger.warning("update_room for unknown room id %s dropped", request.id)
                return UpdateResult(UpdateOutcome.NOT_FOUND)

            self.bus.publish("room_updated", room.model_dump())

        logger.info("Room %s updated | %s", room.id, ", ".join(sorted(fields)))
        return UpdateResult(UpdateOutcome.APPLIED, room=room)


room_service = RoomService(bus=broadcast_bus, allowed_statuses=settings.ALLOWED_STATUSES)
