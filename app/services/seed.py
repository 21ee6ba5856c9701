import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.repositories.room import RoomRepository, room_repository
from app.schemas.room import BuildingCreate, BuildingCreateResponse, FloorLayout

logger = logging.getLogger(__name__)

# {building_name: [(floor, room_count)]}
PRESET_BUILDINGS = {
    "A": [(4, 4), (3, 5), (2, 5)],
    "B": [(2, 6), (3, 6), (4, 6)],
    "C": [(2, 5), (3, 5), (4, 5)],
}

# Buildings created when the table is empty at startup
DEFAULT_BUILDINGS = ("B", "C")


def room_numbers(floor: int, room_count: int) -> List[str]:
    """Floor 2 with three rooms -> ['201', '202', '203']."""
    return [f"{floor}{n:02d}" for n in range(1, room_count + 1)]


def preset_layout(building_name: str) -> Optional[BuildingCreate]:
    floors = PRESET_BUILDINGS.get(building_name)
    if floors is None:
        return None
    return BuildingCreate(
        building_name=building_name,
        floors=[FloorLayout(floor=floor, room_count=count) for floor, count in floors],
    )


class SeedService:
    def __init__(self, repository: RoomRepository = room_repository):
        self.repository = repository

    def building_rows(self, layout: BuildingCreate) -> List[Dict[str, Any]]:
        status = layout.status or settings.DEFAULT_ROOM_STATUS
        return [
            {
                "building_name": layout.building_name,
                "floor": floor.floor,
                "room_number": number,
                "status": status,
                "memo": "",
                "is_deposit_paid": False,
            }
            for floor in layout.floors
            for number in room_numbers(floor.floor, floor.room_count)
        ]

    def create_building(self, db: Session, layout: BuildingCreate) -> BuildingCreateResponse:
        rows = self.building_rows(layout)
        created = self.repository.create_many_if_absent(db, rows)
        logger.info(
            "Building %s: %d rooms created, %d already present",
            layout.building_name, created, len(rows) - created,
        )
        return BuildingCreateResponse(
            building_name=layout.building_name,
            created=created,
            skipped=len(rows) - created,
        )

    def seed_if_empty(self, db: Session) -> int:
        if self.repository.count_all(db) > 0:
            return 0

        logger.info("Seeding database with buildings %s", ", ".join(DEFAULT_BUILDINGS))
        created = 0
        for name in DEFAULT_BUILDINGS:
            created += self.create_building(db, preset_layout(name)).created
        logger.info("Database seeded with %d rooms", created)
        return created


seed_service = SeedService()
