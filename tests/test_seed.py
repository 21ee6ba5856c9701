import pytest

from app.repositories.room import room_repository
from app.schemas.room import BuildingCreate
from app.services.seed import PRESET_BUILDINGS, SeedService, preset_layout, room_numbers


@pytest.fixture
def seed():
    return SeedService()


@pytest.mark.parametrize("floor, count, expected", [
    (2, 3, ["201", "202", "203"]),
    (4, 1, ["401"]),
    (3, 11, ["301", "302", "303", "304", "305", "306", "307", "308", "309", "310", "311"]),
])
def test_room_numbers(floor, count, expected):
    assert room_numbers(floor, count) == expected


def test_preset_layout_known_and_unknown():
    layout = preset_layout("A")
    assert [(f.floor, f.room_count) for f in layout.floors] == PRESET_BUILDINGS["A"]
    assert preset_layout("Z") is None


def test_seed_if_empty_creates_default_buildings(seed, db_session):
    created = seed.seed_if_empty(db_session)

    rooms = room_repository.list_all(db_session)
    assert created == 33
    assert len(rooms) == 33
    assert {r.building_name for r in rooms} == {"B", "C"}
    assert {r.status for r in rooms} == {"ready"}
    assert all(r.memo == "" and r.is_deposit_paid is False for r in rooms)


def test_seed_if_empty_runs_once(seed, db_session):
    seed.seed_if_empty(db_session)

    assert seed.seed_if_empty(db_session) == 0
    assert room_repository.count_all(db_session) == 33


def test_seed_if_empty_skips_non_empty_table(seed, db_session):
    room_repository.create_if_absent(db_session, "Z", 1, "101")

    assert seed.seed_if_empty(db_session) == 0
    assert room_repository.count_all(db_session) == 1


def test_create_building_is_idempotent(seed, db_session):
    layout = BuildingCreate(building_name="D", floors=[{"floor": 2, "room_count": 2}, {"floor": 3, "room_count": 1}])

    first = seed.create_building(db_session, layout)
    second = seed.create_building(db_session, layout)

    assert (first.created, first.skipped) == (3, 0)
    assert (second.created, second.skipped) == (0, 3)
    assert sorted(r.room_number for r in room_repository.list_all(db_session)) == ["201", "202", "301"]


def test_create_building_does_not_touch_existing_rooms(seed, db_session):
    room_repository.create_if_absent(db_session, "D", 2, "201", status="occupied", memo="guest")

    result = seed.create_building(db_session, BuildingCreate(building_name="D", floors=[{"floor": 2, "room_count": 2}]))

    assert (result.created, result.skipped) == (1, 1)
    existing = [r for r in room_repository.list_all(db_session) if r.room_number == "201"][0]
    assert (existing.status, existing.memo) == ("occupied", "guest")


def test_create_building_custom_status(seed, db_session):
    seed.create_building(db_session, BuildingCreate(building_name="E", floors=[{"floor": 1, "room_count": 2}], status="vacant"))

    assert {r.status for r in room_repository.list_all(db_session)} == {"vacant"}
