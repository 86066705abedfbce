"""
Core Layer - Contract event watching and dispatch.

This module provides:
    - EventBus: Single-subscriber FIFO publish/subscribe channel
    - Dispatcher: Routes each event tag to its handler
    - ContractWatcher: Native contract listeners -> bus publications
    - SessionBootstrap: Network/credential validation and contract binding
    - EventListener: start(config) orchestration

Data Flow:
    1. SessionBootstrap opens a BoundSession for the configured network
    2. ContractWatcher registers the Dispatcher once and attaches listeners
    3. IdeaCreated fires -> NEW_IDEA_NFT published on the bus
    4. Dispatcher invokes the idea handler, which may publish NOTIFICATION
"""

from .binding import ContractBinding, EventSubscription, Web3ContractBinding
from .contract_watcher import ContractWatcher, WatchHandle, derive_listenable_events
from .dispatcher import Dispatcher, DispatcherState, DispatchStats, NoRouteError, Route
from .event_bus import AlreadySubscribedError, EventBus, InvalidPayloadError
from .listener import EventListener
from .models import (
    PAYLOAD_TYPES,
    BoundSession,
    EventEnvelope,
    EventTag,
    NewIdeaNFTPayload,
    NotificationInfo,
    NotificationPayload,
    OrderStorePayload,
    SessionConfig,
    TestDirective,
)
from .session import (
    ChainIdMismatchError,
    MissingCredentialError,
    SessionBootstrap,
    UnknownNetworkError,
)

__all__ = [
    # Bus
    "EventBus",
    "AlreadySubscribedError",
    "InvalidPayloadError",
    # Dispatch
    "Dispatcher",
    "DispatcherState",
    "DispatchStats",
    "NoRouteError",
    "Route",
    # Watching
    "ContractBinding",
    "EventSubscription",
    "Web3ContractBinding",
    "ContractWatcher",
    "WatchHandle",
    "derive_listenable_events",
    # Session
    "SessionBootstrap",
    "UnknownNetworkError",
    "MissingCredentialError",
    "ChainIdMismatchError",
    # Orchestration
    "EventListener",
    # Models
    "PAYLOAD_TYPES",
    "BoundSession",
    "EventEnvelope",
    "EventTag",
    "NewIdeaNFTPayload",
    "NotificationInfo",
    "NotificationPayload",
    "OrderStorePayload",
    "SessionConfig",
    "TestDirective",
]
