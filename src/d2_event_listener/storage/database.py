"""
Async PostgreSQL access for handler persistence.

Thin asyncpg pool wrapper with retry on transient connection errors.
"""
from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


TRANSIENT_ERRORS = (
    asyncpg.InterfaceError,
    asyncpg.ConnectionDoesNotExistError,
    asyncpg.ConnectionFailureError,
    ConnectionResetError,
    ConnectionRefusedError,
    OSError,
)


class DatabaseConfig(BaseModel):
    """PostgreSQL database configuration."""

    model_config = ConfigDict(frozen=True)

    url: str = os.environ.get(
        "D2_DATABASE_URL", "postgresql://d2:d2@localhost:5432/d2_events"
    )
    min_connections: int = 1
    max_connections: int = 5
    command_timeout: float = 30.0

    retry_max_attempts: int = 3
    retry_initial_delay: float = 0.1
    retry_max_delay: float = 2.0


class Database:
    """
    Async PostgreSQL connection manager.

    Usage:
        db = Database(DatabaseConfig(url=settings.database_url))
        await db.initialize()

        row = await db.fetchrow("SELECT * FROM idea_nfts WHERE nft_id = $1", "7")

        async with db.transaction() as conn:
            await conn.execute("INSERT INTO ...")

        await db.close()
    """

    def __init__(self, config: Optional[DatabaseConfig] = None) -> None:
        self.config = config or DatabaseConfig()
        self._pool: Optional[asyncpg.Pool] = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def initialize(self) -> None:
        """Create the connection pool."""
        if self._pool is not None:
            return

        self._pool = await asyncpg.create_pool(
            self.config.url,
            min_size=self.config.min_connections,
            max_size=self.config.max_connections,
            command_timeout=self.config.command_timeout,
        )
        logger.info(
            f"Database pool initialized "
            f"(min={self.config.min_connections}, max={self.config.max_connections})"
        )

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Database pool closed")

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[asyncpg.Connection]:
        if self._pool is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        async with self._pool.acquire() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """Connection inside a transaction: commits on exit, rolls back on error."""
        async with self.connection() as conn:
            async with conn.transaction():
                yield conn

    async def health_check(self) -> bool:
        if self._pool is None:
            return False

        try:
            await self.fetchval("SELECT 1")
            return True
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False

    async def _with_retry(self, operation, *args):
        delay = self.config.retry_initial_delay
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.config.retry_max_attempts + 1):
            try:
                async with self.connection() as conn:
                    return await getattr(conn, operation)(*args)
            except TRANSIENT_ERRORS as e:
                last_error = e
                if attempt < self.config.retry_max_attempts:
                    logger.warning(
                        f"Transient DB error (attempt {attempt}): {e}. "
                        f"Retrying in {delay:.2f}s..."
                    )
                    await asyncio.sleep(delay)
                    delay = min(delay * 2, self.config.retry_max_delay)

        logger.error(f"DB operation failed after {self.config.retry_max_attempts} attempts")
        raise last_error

    async def execute(self, query: str, *args) -> str:
        return await self._with_retry("execute", query, *args)

    async def fetch(self, query: str, *args) -> list[asyncpg.Record]:
        return await self._with_retry("fetch", query, *args)

    async def fetchrow(self, query: str, *args) -> Optional[asyncpg.Record]:
        return await self._with_retry("fetchrow", query, *args)

    async def fetchval(self, query: str, *args):
        return await self._with_retry("fetchval", query, *args)
