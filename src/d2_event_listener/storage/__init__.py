"""
Storage Layer - Async PostgreSQL persistence for handler output.

Public API:
    Database, DatabaseConfig - Connection pool management
    ensure_schema - Create the tables

    Models:
        IdeaRecord, NotificationRecord, OrderRecord

    Repositories:
        IdeaRepository, NotificationRepository, OrderRepository
"""
from d2_event_listener.storage.database import Database, DatabaseConfig
from d2_event_listener.storage.models import IdeaRecord, NotificationRecord, OrderRecord
from d2_event_listener.storage.repositories import (
    BaseRepository,
    IdeaRepository,
    NotificationRepository,
    OrderRepository,
)
from d2_event_listener.storage.schema import ensure_schema

__all__ = [
    "Database",
    "DatabaseConfig",
    "ensure_schema",
    "IdeaRecord",
    "NotificationRecord",
    "OrderRecord",
    "BaseRepository",
    "IdeaRepository",
    "NotificationRepository",
    "OrderRepository",
]
