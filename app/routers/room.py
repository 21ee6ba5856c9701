from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session
from typing import List
from app.core.database import get_db
from app.schemas.room import MAX_ROOM_ID, BuildingCreate, BuildingCreateResponse, RoomChanges, RoomRead
from app.services.room import UpdateOutcome, room_service
from app.services.seed import preset_layout, seed_service

router = APIRouter(prefix="/rooms", tags=["Rooms"])

_UPDATE_ERRORS = {
    UpdateOutcome.EMPTY: (status.HTTP_400_BAD_REQUEST, "No fields to update"),
    UpdateOutcome.INVALID: (422, "Invalid update"),
    UpdateOutcome.NOT_FOUND: (status.HTTP_404_NOT_FOUND, "Room not found"),
    UpdateOutcome.FAILED: (status.HTTP_503_SERVICE_UNAVAILABLE, "Room store unavailable"),
}


@router.get("", response_model=List[RoomRead])
def list_rooms(db: Session = Depends(get_db)):
    """All rooms, in the same order as the websocket snapshot"""
    return room_service.list_rooms(db)


@router.patch("/{room_id}", response_model=RoomRead)
async def update_room(changes: RoomChanges, room_id: int = Path(..., ge=1, le=MAX_ROOM_ID)):
    """
    Same pipeline as the ``update_room`` websocket event: only the sent fields
    change and every connected client receives ``room_updated``.
    """
    payload = {**changes.model_dump(exclude_unset=True), "id": room_id}
    result = await room_service.update_room(payload)
    if result.outcome != UpdateOutcome.APPLIED:
        code, message = _UPDATE_ERRORS[result.outcome]
        raise HTTPException(status_code=code, detail=result.detail or message)
    return result.room


@router.post("/buildings", response_model=BuildingCreateResponse, status_code=status.HTTP_201_CREATED)
def create_building(layout: BuildingCreate, db: Session = Depends(get_db)):
    """Bulk-create a building's rooms; rooms that already exist are skipped"""
    return seed_service.create_building(db, layout)


@router.post("/buildings/presets/{building_name}", response_model=BuildingCreateResponse, status_code=status.HTTP_201_CREATED)
def create_preset_building(building_name: str, db: Session = Depends(get_db)):
    layout = preset_layout(building_name)
    if layout is None:
        raise HTTPException(status_code=404, detail=f"No preset for building {building_name}")
    return seed_service.create_building(db, layout)
