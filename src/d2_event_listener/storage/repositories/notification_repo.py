"""
Notification repository.
"""
from __future__ import annotations

from d2_event_listener.storage.models import NotificationRecord
from d2_event_listener.storage.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[NotificationRecord]):
    """Repository for handler notifications."""

    table_name = "notifications"
    model_class = NotificationRecord

    async def create(self, notification: NotificationRecord) -> NotificationRecord:
        query = """
            INSERT INTO notifications
            (type, environment, nft_id, block_number, credential_nft_uuid,
             credential_owner, data, error, order_id, doc_id, delivered, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
            RETURNING *
        """
        record = await self.db.fetchrow(
            query,
            notification.type,
            notification.environment,
            notification.nft_id,
            notification.block_number,
            notification.credential_nft_uuid,
            notification.credential_owner,
            notification.data,
            notification.error,
            notification.order_id,
            notification.doc_id,
            notification.delivered,
            notification.created_at,
        )
        return self._record_to_model(record)

    async def mark_delivered(self, notification_id: int) -> bool:
        query = "UPDATE notifications SET delivered = TRUE WHERE id = $1"
        result = await self.db.execute(query, notification_id)
        return result != "UPDATE 0"

    async def get_recent(self, limit: int = 50) -> list[NotificationRecord]:
        query = """
            SELECT * FROM notifications
            ORDER BY created_at DESC
            LIMIT $1
        """
        records = await self.db.fetch(query, limit)
        return self._records_to_models(records)
