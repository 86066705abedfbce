"""
ORDER_STORE handler - persists an order placed for an idea NFT.
"""
from __future__ import annotations

import json
import logging
from typing import Optional

from d2_event_listener.core.models import OrderStorePayload
from d2_event_listener.storage.models import OrderRecord
from d2_event_listener.storage.repositories import OrderRepository

logger = logging.getLogger(__name__)


class OrderStoreHandler:
    """Handles ORDER_STORE events. Without a repository orders are only logged."""

    def __init__(self, repository: Optional[OrderRepository] = None) -> None:
        self._repository = repository

    async def __call__(self, payload: OrderStorePayload) -> Optional[OrderRecord]:
        order = OrderRecord(
            network=payload.network,
            environment=payload.environment,
            nft_id=payload.nft_id,
            block_number=payload.block_number,
            order_json=json.dumps(dict(payload.order), default=str),
            credential_nft_uuid=payload.credential_nft_uuid,
            doc_id=payload.doc_id,
        )

        if self._repository is None:
            logger.info(f"Order for NFT {payload.nft_id} not persisted (no storage)")
            return order

        stored = await self._repository.create(order)
        logger.info(
            f"Stored order for NFT {payload.nft_id} on {payload.network} "
            f"(id={stored.id if stored else None})"
        )
        return stored
