from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional

from app.models.room import UPDATABLE_FIELDS

# upper bound of the rooms.id INTEGER column
MAX_ROOM_ID = 2**31 - 1


class RoomRead(BaseModel):
    id: int
    building_name: str
    room_number: str
    floor: int
    status: str
    memo: str = ""
    is_deposit_paid: bool = False

    model_config = ConfigDict(from_attributes=True)


class RoomUpdate(BaseModel):
    """
    Sparse update of one room. Only the keys the client actually sent take part
    in the change set, so ``memo: ""`` and a missing ``memo`` stay distinct.
    """
    id: int = Field(..., ge=1, le=MAX_ROOM_ID)
    status: Optional[str] = None
    memo: Optional[str] = None
    is_deposit_paid: Optional[bool] = Field(
        None,
        validation_alias=AliasChoices("is_deposit_paid", "isDepositPaid"),
    )

    @field_validator("status", "memo", "is_deposit_paid", mode="before")
    @classmethod
    def reject_null(cls, v):
        # Runs only for keys present in the payload
        if v is None:
            raise ValueError("must not be null")
        return v

    def changes(self) -> Dict[str, Any]:
        return {
            field: getattr(self, field)
            for field in UPDATABLE_FIELDS
            if field in self.model_fields_set
        }


class RoomChanges(BaseModel):
    """REST body of a partial update; the id comes from the path."""
    status: Optional[str] = None
    memo: Optional[str] = None
    is_deposit_paid: Optional[bool] = Field(
        None,
        validation_alias=AliasChoices("is_deposit_paid", "isDepositPaid"),
    )


class FloorLayout(BaseModel):
    floor: int = Field(..., ge=0, le=200)
    room_count: int = Field(..., ge=1, le=99)


class BuildingCreate(BaseModel):
    building_name: str = Field(..., min_length=1, max_length=50)
    floors: List[FloorLayout] = Field(..., min_length=1)
    status: Optional[str] = None

    @field_validator("building_name")
    @classmethod
    def validate_building_name(cls, v):
        if not v.strip():
            raise ValueError("Building name cannot be empty")
        return v.strip()


class BuildingCreateResponse(BaseModel):
    building_name: str
    created: int
    skipped: int
