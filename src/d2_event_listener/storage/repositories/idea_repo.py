"""
Idea NFT repository.
"""
from __future__ import annotations

from typing import Optional

from d2_event_listener.storage.models import IdeaRecord
from d2_event_listener.storage.repositories.base import BaseRepository


class IdeaRepository(BaseRepository[IdeaRecord]):
    """Repository for idea NFTs observed on-chain."""

    table_name = "idea_nfts"
    model_class = IdeaRecord

    async def upsert(self, idea: IdeaRecord) -> IdeaRecord:
        """
        Insert an idea, or refresh it if (network, nft_id) already exists.

        Replaying the same IdeaCreated event therefore never duplicates rows.
        """
        query = """
            INSERT INTO idea_nfts
            (network, nft_id, block_number, creator, metadata_id,
             contract_address, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            ON CONFLICT (network, nft_id) DO UPDATE SET
                block_number = EXCLUDED.block_number,
                creator = EXCLUDED.creator,
                metadata_id = EXCLUDED.metadata_id,
                contract_address = EXCLUDED.contract_address
            RETURNING *
        """
        record = await self.db.fetchrow(
            query,
            idea.network,
            idea.nft_id,
            idea.block_number,
            idea.creator,
            idea.metadata_id,
            idea.contract_address,
            idea.created_at,
        )
        return self._record_to_model(record)

    async def get_by_nft(self, network: str, nft_id: str) -> Optional[IdeaRecord]:
        query = "SELECT * FROM idea_nfts WHERE network = $1 AND nft_id = $2"
        record = await self.db.fetchrow(query, network, nft_id)
        return self._record_to_model(record)

    async def list_by_network(self, network: str, limit: int = 100) -> list[IdeaRecord]:
        """Most recent ideas first."""
        query = """
            SELECT * FROM idea_nfts
            WHERE network = $1
            ORDER BY block_number DESC
            LIMIT $2
        """
        records = await self.db.fetch(query, network, limit)
        return self._records_to_models(records)
