"""
Storage test fixtures.

Storage tests never touch a live PostgreSQL server: the asyncpg pool and
the Database wrapper are mocked, and query results are plain dicts.
"""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from d2_event_listener.storage.database import Database, DatabaseConfig


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def mock_conn():
    conn = MagicMock()
    conn.execute = AsyncMock(return_value="OK")
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=1)

    class MockTransaction:
        async def __aenter__(self):
            return None

        async def __aexit__(self, *args):
            return False

    conn.transaction = MagicMock(side_effect=lambda: MockTransaction())
    return conn


@pytest.fixture
def mock_pool(mock_conn):
    """asyncpg pool whose acquire() yields ``mock_conn``."""

    class MockAcquire:
        async def __aenter__(self):
            return mock_conn

        async def __aexit__(self, *args):
            return False

    pool = MagicMock()
    pool.acquire = MagicMock(side_effect=lambda: MockAcquire())
    pool.close = AsyncMock()
    return pool


@pytest.fixture
def db(mock_pool):
    """Database wired to the mock pool, with no retry backoff."""
    database = Database(DatabaseConfig(url="postgresql://test@localhost/test", retry_initial_delay=0))
    database._pool = mock_pool
    return database


@pytest.fixture
def mock_db():
    """Database stand-in for repository tests."""
    db = MagicMock()
    db.execute = AsyncMock(return_value="UPDATE 1")
    db.fetch = AsyncMock(return_value=[])
    db.fetchrow = AsyncMock(return_value=None)
    db.fetchval = AsyncMock(return_value=0)
    return db


# =============================================================================
# ROW FIXTURES
# =============================================================================


@pytest.fixture
def created_at():
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def idea_row(created_at):
    return {
        "id": 1,
        "network": "polygon",
        "nft_id": "7",
        "block_number": 42,
        "creator": "0xcreator",
        "metadata_id": "meta-7",
        "contract_address": "0x99aEA5533c117aa39904B66Ceec69435EC9109C8",
        "created_at": created_at,
    }


@pytest.fixture
def order_row(created_at):
    return {
        "id": 3,
        "network": "polygon",
        "environment": "development",
        "nft_id": "7",
        "block_number": 42,
        "order_json": '{"size": 20}',
        "credential_nft_uuid": None,
        "doc_id": None,
        "created_at": created_at,
    }
