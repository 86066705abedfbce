"""
Data models for the dispatch pipeline.

These models represent:
- Session inputs (SessionConfig, TestDirective) and the bound session
- The closed set of event tags and the payload type each tag carries
- The envelope that flows through the event bus

Payloads are frozen dataclasses; each EventTag maps to exactly one payload
type in PAYLOAD_TYPES, which the bus checks on publish.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional

if TYPE_CHECKING:
    from d2_event_listener.core.binding import ContractBinding


class EventTag(str, Enum):
    """Internal event kinds routed by the Dispatcher."""
    NEW_IDEA_NFT = "NEW_IDEA_NFT"
    NOTIFICATION = "NOTIFICATION"
    ORDER_STORE = "ORDER_STORE"


@dataclass(frozen=True)
class TestDirective:
    """
    Test-mode instruction for a start() call.

    When enabled, no native listener is attached; a synthetic NEW_IDEA_NFT
    event is published for ``block_number`` instead, and start() returns
    the idea handler's result.
    """
    enabled: bool = False
    block_number: int = 0


@dataclass(frozen=True)
class SessionConfig:
    """Inputs needed to open a watch session."""
    network: str
    private_key: str
    test: Optional[TestDirective] = None

    @property
    def is_test(self) -> bool:
        return self.test is not None and self.test.enabled

    def __repr__(self) -> str:
        return (
            f"SessionConfig(network={self.network!r}, "
            f"private_key={mask_secret(self.private_key)!r}, test={self.test!r})"
        )


@dataclass(frozen=True)
class BoundSession:
    """
    A validated, connected contract handle.

    Attributes:
        network: Network name the session was opened for
        rpc_url: RPC endpoint in use
        chain_id: Numeric chain id (never the unknown sentinel)
        signer_address: Checksum address derived from the private key
        contract: Contract binding used to enumerate and listen to events
    """
    network: str
    rpc_url: str
    chain_id: int
    signer_address: str
    contract: "ContractBinding"


# =============================================================================
# Payloads
# =============================================================================


@dataclass(frozen=True)
class NewIdeaNFTPayload:
    """Payload of NEW_IDEA_NFT: an IdeaCreated event observed at a block."""
    contract: "ContractBinding"
    network: str
    rpc_url: str
    block_number: int


@dataclass(frozen=True)
class NotificationInfo:
    environment: str
    nft_id: str
    block_number: int
    credential_nft_uuid: str = ""
    credential_owner: str = ""
    data: Any = None
    error: Optional[str] = None
    order_id: Optional[str] = None
    doc_id: Optional[str] = None


@dataclass(frozen=True)
class NotificationPayload:
    """Payload of NOTIFICATION."""
    type: str
    info: NotificationInfo


@dataclass(frozen=True)
class OrderStorePayload:
    """Payload of ORDER_STORE: an order to persist for an idea NFT."""
    network: str
    environment: str
    nft_id: str
    block_number: int
    order: Mapping[str, Any] = field(default_factory=dict)
    credential_nft_uuid: Optional[str] = None
    doc_id: Optional[str] = None


PAYLOAD_TYPES: dict[EventTag, type] = {
    EventTag.NEW_IDEA_NFT: NewIdeaNFTPayload,
    EventTag.NOTIFICATION: NotificationPayload,
    EventTag.ORDER_STORE: OrderStorePayload,
}


@dataclass
class EventEnvelope:
    """
    A single published occurrence on the bus.

    ``reply`` is a one-shot completion future set only by callers that
    wait for the handler's result (test mode).
    """
    tag: EventTag
    payload: Any
    sequence: int
    published_at: float = field(default_factory=time.time)
    reply: Optional[asyncio.Future] = None


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """Mask all but the last few characters of a secret for logging."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]
