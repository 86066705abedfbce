"""
Contract watcher.

Translates a bound contract's native event stream into event bus
publications:
    1. Make sure the Dispatcher is subscribed to the bus (once per process)
    2. Derive the listenable event names from the contract's filter keys
    3. Attach one native listener per name

Only IdeaCreated is routed (to NEW_IDEA_NFT). Other derived events are
listened to and logged but not published.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from d2_event_listener.config import IDEA_CREATED_EVENT, LIFECYCLE_EVENT_NAMES

from .binding import EventSubscription
from .event_bus import EventBus
from .models import BoundSession, EventTag, NewIdeaNFTPayload

if TYPE_CHECKING:
    from .dispatcher import Dispatcher

logger = logging.getLogger(__name__)


def derive_listenable_events(contract_filter_names: Iterable[str]) -> set[str]:
    """
    Reduce contract filter keys to distinct event names worth listening to.

    Strips signature suffixes ("Foo(uint256)" -> "Foo"), deduplicates and
    drops lifecycle events such as "Initialized".
    """
    events = {name.split("(")[0] for name in contract_filter_names}
    events -= LIFECYCLE_EVENT_NAMES
    events.discard("")

    if events:
        logger.info(f"Events to listen: {', '.join(sorted(events))}")
    else:
        logger.warning("No events found")

    return events


def extract_block_number(metadata: Any) -> int:
    """Read blockNumber from a native event's trailing metadata object."""
    if hasattr(metadata, "keys"):
        return metadata["blockNumber"]
    return getattr(metadata, "blockNumber")


class WatchHandle:
    """Listeners attached by one ContractWatcher.attach() call."""

    def __init__(self, session: BoundSession, events: set[str]) -> None:
        self.session = session
        self.events = events
        self.subscriptions: list[EventSubscription] = []

    @property
    def is_active(self) -> bool:
        return any(s.is_active for s in self.subscriptions)

    def detach(self) -> None:
        """Cancel every native listener of this handle."""
        for subscription in self.subscriptions:
            subscription.cancel()
        if self.subscriptions:
            logger.info(
                f"Detached {len(self.subscriptions)} listener(s) "
                f"from {self.session.network}"
            )


class ContractWatcher:
    """
    Attaches native contract listeners that publish to the event bus.

    Usage:
        watcher = ContractWatcher(bus, dispatcher)
        handle = watcher.attach(session)
        ...
        handle.detach()
    """

    def __init__(self, bus: EventBus, dispatcher: "Dispatcher") -> None:
        self._bus = bus
        self._dispatcher = dispatcher

    def ensure_registered(self) -> None:
        """Subscribe the Dispatcher to the bus if it is not yet."""
        if self._dispatcher.register(self._bus):
            logger.info("Watcher loaded")

    def attach(self, session: BoundSession) -> WatchHandle:
        """
        Attach native listeners for every listenable event of the contract.

        If attaching any listener fails, those already attached are
        cancelled before the error propagates.
        """
        self.ensure_registered()

        logger.info("Listening the events flow...")
        events = derive_listenable_events(session.contract.filter_names())
        handle = WatchHandle(session, events)

        try:
            for event_name in sorted(events):
                subscription = session.contract.on(
                    event_name, self._make_listener(event_name, session)
                )
                handle.subscriptions.append(subscription)
        except Exception:
            handle.detach()
            raise

        return handle

    def publish_idea_created(self, session: BoundSession, block_number: int, reply=None):
        """Publish NEW_IDEA_NFT for ``block_number`` on ``session``'s contract."""
        return self._bus.publish(
            EventTag.NEW_IDEA_NFT,
            NewIdeaNFTPayload(
                contract=session.contract,
                network=session.network,
                rpc_url=session.rpc_url,
                block_number=block_number,
            ),
            reply=reply,
        )

    def _make_listener(self, event_name: str, session: BoundSession):
        async def on_event(*args: Any) -> None:
            if event_name != IDEA_CREATED_EVENT:
                logger.debug(f"{event_name} observed on {session.network}, not routed")
                return

            block_number = extract_block_number(args[-1])
            logger.info(f"{event_name} at block {block_number} on {session.network}")
            self.publish_idea_created(session, block_number)

        return on_event
