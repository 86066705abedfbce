"""
Base repository class for async PostgreSQL access.
"""
from __future__ import annotations

from typing import Generic, Optional, Type, TypeVar

from pydantic import BaseModel

from d2_event_listener.storage.database import Database

T = TypeVar("T", bound=BaseModel)


class BaseRepository(Generic[T]):
    """
    Base class for async repositories.

    Subclasses define table name and model type.
    """

    table_name: str
    model_class: Type[T]

    def __init__(self, db: Database) -> None:
        self.db = db

    def _record_to_model(self, record) -> Optional[T]:
        """Convert asyncpg Record to Pydantic model."""
        if record is None:
            return None
        return self.model_class(**dict(record))

    def _records_to_models(self, records) -> list[T]:
        return [self._record_to_model(r) for r in records]

    async def count(self) -> int:
        query = f"SELECT COUNT(*) FROM {self.table_name}"
        return await self.db.fetchval(query)
