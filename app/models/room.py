from sqlalchemy import Boolean, Column, Integer, Text, false
from sqlalchemy.schema import UniqueConstraint

from app.models.base import Base

# Columns a client may change after the room exists
UPDATABLE_FIELDS = ("status", "memo", "is_deposit_paid")


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("building_name", "room_number", name="uq_rooms_building_room"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    building_name = Column(Text, nullable=False)
    room_number = Column(Text, nullable=False)
    floor = Column(Integer, nullable=False)
    # Free text: the vocabulary (ready / occupied / vacant / cleaning ...) is deployment specific
    status = Column(Text, nullable=False, default="ready", server_default="ready")
    memo = Column(Text, nullable=False, default="", server_default="")
    is_deposit_paid = Column(Boolean, nullable=False, default=False, server_default=false())

    def __repr__(self) -> str:
        return f"<Room {self.id} {self.building_name}-{self.room_number} {self.status}>"
