from typing import Generic, Type, TypeVar, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

T = TypeVar("T")

class BaseRepository(Generic[T]):
    def __init__(self, model: Type[T]):
        self.model = model

    def get(self, db: Session, id: int) -> Optional[T]:
        return db.get(self.model, id)

    def count_all(self, db: Session) -> int:
        return db.query(func.count()).select_from(self.model).scalar() or 0
