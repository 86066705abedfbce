"""
Repository classes for async PostgreSQL access.
"""
from d2_event_listener.storage.repositories.base import BaseRepository
from d2_event_listener.storage.repositories.idea_repo import IdeaRepository
from d2_event_listener.storage.repositories.notification_repo import NotificationRepository
from d2_event_listener.storage.repositories.order_repo import OrderRepository

__all__ = [
    "BaseRepository",
    "IdeaRepository",
    "NotificationRepository",
    "OrderRepository",
]
