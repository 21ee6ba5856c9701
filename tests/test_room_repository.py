import pytest

from app.models.room import Room
from app.repositories.room import room_repository


def test_create_if_absent_ignores_duplicate_natural_key(db_session):
    assert room_repository.create_if_absent(db_session, "B", 2, "201", status="ready") is True
    # Same building + room number: no error, no second row
    assert room_repository.create_if_absent(db_session, "B", 5, "201", status="occupied") is False

    rooms = room_repository.list_all(db_session)
    assert len(rooms) == 1
    assert rooms[0].floor == 2
    assert rooms[0].status == "ready"


def test_same_room_number_in_other_building_is_allowed(db_session):
    room_repository.create_if_absent(db_session, "B", 2, "201")
    room_repository.create_if_absent(db_session, "C", 2, "201")

    assert room_repository.count_all(db_session) == 2


def test_create_if_absent_defaults(db_session):
    room_repository.create_if_absent(db_session, "A", 4, "401")

    room = room_repository.list_all(db_session)[0]
    assert room.status == "ready"
    assert room.memo == ""
    assert room.is_deposit_paid is False
    assert isinstance(room.id, int)


def test_create_many_if_absent_counts_only_new_rows(db_session):
    rows = [
        {"building_name": "A", "floor": 2, "room_number": n, "status": "ready", "memo": "", "is_deposit_paid": False}
        for n in ("201", "202", "203")
    ]
    assert room_repository.create_many_if_absent(db_session, rows) == 3
    assert room_repository.create_many_if_absent(db_session, rows) == 0
    assert room_repository.count_all(db_session) == 3


def test_list_all_orders_by_room_number_as_text(db_session):
    for building, floor, number in [("C", 4, "401"), ("B", 10, "1001"), ("B", 2, "201"), ("A", 3, "301")]:
        room_repository.create_if_absent(db_session, building, floor, number)

    numbers = [room.room_number for room in room_repository.list_all(db_session)]
    # lexicographic, not numeric: "1001" < "201"
    assert numbers == ["1001", "201", "301", "401"]


def test_list_all_breaks_ties_by_building(db_session):
    room_repository.create_if_absent(db_session, "C", 2, "201")
    room_repository.create_if_absent(db_session, "B", 2, "201")

    assert [r.building_name for r in room_repository.list_all(db_session)] == ["B", "C"]


def test_count_all_empty(db_session):
    assert room_repository.count_all(db_session) == 0


def test_apply_partial_update_changes_only_named_fields(db_session, seeded_rooms, session_factory):
    room_id = seeded_rooms["201"]

    updated = room_repository.apply_partial_update(db_session, room_id, {"memo": "hi"})

    assert updated.memo == "hi"
    assert updated.status == "vacant"
    assert updated.is_deposit_paid is False
    assert updated.floor == 2
    assert updated.building_name == "B"
    assert updated.room_number == "201"

    # committed: visible from another session
    other = session_factory()
    try:
        stored = other.get(Room, room_id)
        assert (stored.status, stored.memo, stored.is_deposit_paid) == ("vacant", "hi", False)
    finally:
        other.close()


def test_apply_partial_update_accepts_empty_string_and_false(db_session, seeded_rooms):
    room_id = seeded_rooms["201"]
    room_repository.apply_partial_update(db_session, room_id, {"memo": "leak", "is_deposit_paid": True})

    updated = room_repository.apply_partial_update(db_session, room_id, {"memo": "", "is_deposit_paid": False})

    assert updated.memo == ""
    assert updated.is_deposit_paid is False


def test_apply_partial_update_leaves_other_rooms_alone(db_session, seeded_rooms):
    room_repository.apply_partial_update(db_session, seeded_rooms["201"], {"status": "occupied"})

    by_number = {r.room_number: r for r in room_repository.list_all(db_session)}
    assert by_number["201"].status == "occupied"
    assert by_number["202"].status == "ready"
    assert by_number["301"].status == "cleaning"


def test_apply_partial_update_unknown_id_returns_none(db_session, seeded_rooms):
    assert room_repository.apply_partial_update(db_session, 9999, {"status": "occupied"}) is None
    assert {r.status for r in room_repository.list_all(db_session)} == {"vacant", "ready", "cleaning"}


@pytest.mark.parametrize("fields", [{}, {"floor": 3}, {"room_number": "999"}, {"id": 5}])
def test_apply_partial_update_rejects_empty_or_foreign_fields(db_session, seeded_rooms, fields):
    with pytest.raises(ValueError):
        room_repository.apply_partial_update(db_session, seeded_rooms["201"], fields)
