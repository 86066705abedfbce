"""
Shared test fixtures for integration tests.

This file provides fixtures that span multiple components,
unlike component-specific fixtures in src/d2_event_listener/{component}/tests/conftest.py
"""
from unittest.mock import MagicMock

import pytest

from d2_event_listener.storage.models import IdeaRecord, NotificationRecord, OrderRecord


# =============================================================================
# In-memory Repositories
# =============================================================================


class InMemoryIdeaRepository:
    """IdeaRepository keyed on (network, nft_id), like the real unique index."""

    def __init__(self):
        self.rows: dict[tuple[str, str], IdeaRecord] = {}

    async def upsert(self, idea: IdeaRecord) -> IdeaRecord:
        key = (idea.network, idea.nft_id)
        existing = self.rows.get(key)
        row_id = existing.id if existing else len(self.rows) + 1
        stored = idea.model_copy(update={"id": row_id})
        self.rows[key] = stored
        return stored


class InMemoryNotificationRepository:
    def __init__(self):
        self.rows: list[NotificationRecord] = []

    async def create(self, notification: NotificationRecord) -> NotificationRecord:
        stored = notification.model_copy(update={"id": len(self.rows) + 1})
        self.rows.append(stored)
        return stored

    async def mark_delivered(self, notification_id: int) -> bool:
        for i, row in enumerate(self.rows):
            if row.id == notification_id:
                self.rows[i] = row.model_copy(update={"delivered": True})
                return True
        return False


class InMemoryOrderRepository:
    def __init__(self):
        self.rows: list[OrderRecord] = []

    async def create(self, order: OrderRecord) -> OrderRecord:
        stored = order.model_copy(update={"id": len(self.rows) + 1})
        self.rows.append(stored)
        return stored


@pytest.fixture
def idea_repo():
    return InMemoryIdeaRepository()


@pytest.fixture
def notification_repo():
    return InMemoryNotificationRepository()


@pytest.fixture
def order_repo():
    return InMemoryOrderRepository()


# =============================================================================
# Notifier Fixtures
# =============================================================================


@pytest.fixture
def sent_messages():
    return []


@pytest.fixture
def notifier(sent_messages):
    """Configured notifier that records messages instead of posting them."""
    from d2_event_listener.handlers import TelegramNotifier

    notifier = TelegramNotifier(bot_token="123:abc", chat_id="-100", session=MagicMock())

    async def record(text):
        sent_messages.append(text)
        return True

    notifier._post = record
    return notifier
