"""
NEW_IDEA_NFT handler.

Resolves the idea NFT minted at the event's block, stores it, and publishes
an "idea-created" NOTIFICATION.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from d2_event_listener import EventListenerError
from d2_event_listener.core.event_bus import EventBus
from d2_event_listener.core.models import (
    EventTag,
    NewIdeaNFTPayload,
    NotificationInfo,
    NotificationPayload,
)
from d2_event_listener.storage.models import IdeaRecord
from d2_event_listener.storage.repositories import IdeaRepository

logger = logging.getLogger(__name__)


IDEA_CREATED_NOTIFICATION = "idea-created"


class IdeaNotFoundError(EventListenerError):
    """No idea NFT is recorded for the requested block."""

    def __init__(self, network: str, block_number: int):
        super().__init__(f"No idea NFT found at block {block_number} on {network}")
        self.network = network
        self.block_number = block_number


def _field(value: Any, name: str, index: int) -> Any:
    # web3 returns tuples for struct outputs; some providers give dicts
    if hasattr(value, "keys"):
        return value[name]
    return value[index]


class NewIdeaNFTHandler:
    """
    Handles NEW_IDEA_NFT events.

    Returns the stored (or, without a repository, the built) IdeaRecord,
    which is what a test-mode start() call resolves to.
    """

    def __init__(
        self,
        bus: Optional[EventBus] = None,
        repository: Optional[IdeaRepository] = None,
        environment: str = "development",
    ) -> None:
        self._bus = bus
        self._repository = repository
        self._environment = environment

    async def __call__(self, payload: NewIdeaNFTPayload) -> IdeaRecord:
        contract = payload.contract

        metadata = await contract.call("getMetadataIdByBlockId", payload.block_number)
        nft_id = int(_field(metadata, "nftId", 0))
        if nft_id == 0:
            raise IdeaNotFoundError(payload.network, payload.block_number)

        metadata_id = _field(metadata, "metadataId", 2)
        creator = await contract.call("getCreatorOfNft", nft_id)

        idea = IdeaRecord(
            network=payload.network,
            nft_id=str(nft_id),
            block_number=payload.block_number,
            creator=creator,
            metadata_id=metadata_id,
            contract_address=getattr(contract, "address", None),
        )
        logger.info(
            f"Idea NFT {idea.nft_id} by {creator} at block {payload.block_number} "
            f"on {payload.network}"
        )

        if self._repository is not None:
            idea = await self._repository.upsert(idea)

        if self._bus is not None:
            self._bus.publish(
                EventTag.NOTIFICATION,
                NotificationPayload(
                    type=IDEA_CREATED_NOTIFICATION,
                    info=NotificationInfo(
                        environment=self._environment,
                        nft_id=idea.nft_id,
                        block_number=idea.block_number,
                        credential_owner=creator or "",
                        data={"metadataId": metadata_id, "network": idea.network},
                    ),
                ),
            )

        return idea
