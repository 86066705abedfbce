"""
Pydantic models matching the storage schema (see schema.py).
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdeaRecord(BaseModel):
    """An idea NFT observed on-chain."""

    id: Optional[int] = None
    network: str
    nft_id: str
    block_number: int
    creator: Optional[str] = None
    metadata_id: Optional[str] = None
    contract_address: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class NotificationRecord(BaseModel):
    """A notification emitted by a handler."""

    id: Optional[int] = None
    type: str
    environment: str
    nft_id: str
    block_number: int
    credential_nft_uuid: Optional[str] = None
    credential_owner: Optional[str] = None
    data: Optional[str] = None  # JSON
    error: Optional[str] = None
    order_id: Optional[str] = None
    doc_id: Optional[str] = None
    delivered: bool = False
    created_at: datetime = Field(default_factory=_utcnow)


class OrderRecord(BaseModel):
    """An order stored for an idea NFT."""

    id: Optional[int] = None
    network: str
    environment: str
    nft_id: str
    block_number: int
    order_json: str
    credential_nft_uuid: Optional[str] = None
    doc_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)

    def order(self) -> dict[str, Any]:
        return json.loads(self.order_json)
