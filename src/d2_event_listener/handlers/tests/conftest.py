"""
Handler test fixtures.

Repositories and the Telegram session are mocked; handlers are exercised
against a FakeBinding whose view calls return canned values.
"""
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from d2_event_listener.core import EventBus, NewIdeaNFTPayload
from d2_event_listener.handlers import TelegramNotifier


# =============================================================================
# Contract Fixtures
# =============================================================================


@pytest.fixture
def gate_binding(make_binding):
    """Gate contract with idea NFT 7 minted at block 42."""
    return make_binding(
        calls={
            "getMetadataIdByBlockId": (7, 42, "meta-7"),
            "getCreatorOfNft": "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23",
        }
    )


@pytest.fixture
def idea_payload(gate_binding):
    return NewIdeaNFTPayload(
        contract=gate_binding,
        network="polygon",
        rpc_url="https://polygon-rpc.com",
        block_number=42,
    )


@pytest.fixture
def mock_bus():
    return MagicMock(spec=EventBus)


# =============================================================================
# Repository Fixtures
# =============================================================================


def _stored(record, record_id=1):
    return record.model_copy(update={"id": record_id})


@pytest.fixture
def idea_repo():
    repo = MagicMock()
    repo.upsert = AsyncMock(side_effect=_stored)
    return repo


@pytest.fixture
def notification_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=_stored)
    repo.mark_delivered = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def order_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=_stored)
    return repo


# =============================================================================
# Telegram Fixtures
# =============================================================================


class FakeResponse:
    def __init__(self, status=200):
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise aiohttp.ClientResponseError(
                request_info=MagicMock(), history=(), status=self.status
            )


class FakePost:
    """Async context manager returned by session.post()."""

    def __init__(self, response):
        self.response = response

    async def __aenter__(self):
        return self.response

    async def __aexit__(self, *args):
        return False


@pytest.fixture
def mock_telegram_session():
    """aiohttp session whose post() always succeeds."""
    session = MagicMock()
    session.post = MagicMock(side_effect=lambda *a, **kw: FakePost(FakeResponse()))
    session.close = AsyncMock()
    return session


@pytest.fixture
def notifier(mock_telegram_session):
    return TelegramNotifier(
        bot_token="123:abc",
        chat_id="-100",
        session=mock_telegram_session,
    )


@pytest.fixture
def make_post():
    """Factory for session.post() results with a given HTTP status."""

    def factory(status=200):
        return FakePost(FakeResponse(status=status))

    return factory
