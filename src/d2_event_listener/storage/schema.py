"""
Schema for the handler persistence tables.
"""
from __future__ import annotations

import logging

from d2_event_listener.storage.database import Database

logger = logging.getLogger(__name__)


SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS idea_nfts (
        id SERIAL PRIMARY KEY,
        network TEXT NOT NULL,
        nft_id TEXT NOT NULL,
        block_number BIGINT NOT NULL,
        creator TEXT,
        metadata_id TEXT,
        contract_address TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        UNIQUE (network, nft_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notifications (
        id SERIAL PRIMARY KEY,
        type TEXT NOT NULL,
        environment TEXT NOT NULL,
        nft_id TEXT NOT NULL,
        block_number BIGINT NOT NULL,
        credential_nft_uuid TEXT,
        credential_owner TEXT,
        data TEXT,
        error TEXT,
        order_id TEXT,
        doc_id TEXT,
        delivered BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS stored_orders (
        id SERIAL PRIMARY KEY,
        network TEXT NOT NULL,
        environment TEXT NOT NULL,
        nft_id TEXT NOT NULL,
        block_number BIGINT NOT NULL,
        order_json TEXT NOT NULL,
        credential_nft_uuid TEXT,
        doc_id TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_stored_orders_nft ON stored_orders (network, nft_id)",
]


async def ensure_schema(db: Database) -> None:
    """Create the tables if they do not exist."""
    async with db.transaction() as conn:
        for statement in SCHEMA_STATEMENTS:
            await conn.execute(statement)
    logger.info("Storage schema ready")
