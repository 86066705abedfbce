"""
Stored order repository.
"""
from __future__ import annotations

from d2_event_listener.storage.models import OrderRecord
from d2_event_listener.storage.repositories.base import BaseRepository


class OrderRepository(BaseRepository[OrderRecord]):
    """Repository for orders stored against idea NFTs."""

    table_name = "stored_orders"
    model_class = OrderRecord

    async def create(self, order: OrderRecord) -> OrderRecord:
        query = """
            INSERT INTO stored_orders
            (network, environment, nft_id, block_number, order_json,
             credential_nft_uuid, doc_id, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            RETURNING *
        """
        record = await self.db.fetchrow(
            query,
            order.network,
            order.environment,
            order.nft_id,
            order.block_number,
            order.order_json,
            order.credential_nft_uuid,
            order.doc_id,
            order.created_at,
        )
        return self._record_to_model(record)

    async def get_by_nft(self, network: str, nft_id: str) -> list[OrderRecord]:
        query = """
            SELECT * FROM stored_orders
            WHERE network = $1 AND nft_id = $2
            ORDER BY created_at DESC
        """
        records = await self.db.fetch(query, network, nft_id)
        return self._records_to_models(records)
