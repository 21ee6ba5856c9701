from .base import Base
from .room import Room, UPDATABLE_FIELDS
