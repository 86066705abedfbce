"""
NOTIFICATION handler - stores the notification and forwards it to Telegram.
"""
from __future__ import annotations

import json
import logging
from typing import Optional

from d2_event_listener.core.models import NotificationPayload
from d2_event_listener.storage.models import NotificationRecord
from d2_event_listener.storage.repositories import NotificationRepository

from .notifier import TelegramNotifier

logger = logging.getLogger(__name__)


def format_notification(payload: NotificationPayload) -> str:
    info = payload.info
    lines = [
        f"Environment: {info.environment}",
        f"NFT: {info.nft_id}",
        f"Block: {info.block_number}",
    ]
    if info.credential_owner:
        lines.append(f"Owner: {info.credential_owner}")
    if info.order_id:
        lines.append(f"Order: {info.order_id}")
    if info.error:
        lines.append(f"Error: {info.error}")
    return "\n".join(lines)


class NotificationHandler:
    """Handles NOTIFICATION events."""

    def __init__(
        self,
        repository: Optional[NotificationRepository] = None,
        notifier: Optional[TelegramNotifier] = None,
    ) -> None:
        self._repository = repository
        self._notifier = notifier

    async def __call__(self, payload: NotificationPayload) -> None:
        info = payload.info
        logger.info(f"Notification {payload.type} for NFT {info.nft_id} (block {info.block_number})")

        record: Optional[NotificationRecord] = None
        if self._repository is not None:
            record = await self._repository.create(
                NotificationRecord(
                    type=payload.type,
                    environment=info.environment,
                    nft_id=info.nft_id,
                    block_number=info.block_number,
                    credential_nft_uuid=info.credential_nft_uuid or None,
                    credential_owner=info.credential_owner or None,
                    data=json.dumps(info.data, default=str) if info.data is not None else None,
                    error=info.error,
                    order_id=info.order_id,
                    doc_id=info.doc_id,
                )
            )

        if self._notifier is None:
            return

        sent = await self._notifier.send(
            title=payload.type,
            message=format_notification(payload),
            dedup_key=f"{payload.type}:{info.nft_id}:{info.block_number}",
        )
        if sent and record is not None and record.id is not None:
            await self._repository.mark_delivered(record.id)
