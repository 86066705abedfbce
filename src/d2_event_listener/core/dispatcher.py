"""
Dispatcher - the single event bus subscriber.

Routes each envelope to the handler registered for its tag:

    NEW_IDEA_NFT  -> idea minting handler (completes the caller's reply future)
    NOTIFICATION  -> notification handler (fire-and-forget)
    ORDER_STORE   -> order persistence handler (fire-and-forget)

Handler errors are caught and logged here so one failing handler never
stops dispatch of later events.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from d2_event_listener import EventListenerError

from .event_bus import EventBus
from .models import EventEnvelope, EventTag

logger = logging.getLogger(__name__)


Handler = Callable[[Any], Awaitable[Any]]


class NoRouteError(EventListenerError):
    """A caller awaits a reply for a tag that has no handler."""

    def __init__(self, tag: EventTag):
        super().__init__(f"No handler registered for {tag.value}")
        self.tag = tag


class DispatcherState(str, Enum):
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"


@dataclass(frozen=True)
class Route:
    """Handler bound to an event tag."""
    name: str
    handler: Handler
    resolves_caller: bool = False


@dataclass
class DispatchStats:
    """Runtime dispatch counters."""

    dispatched: int = 0
    handler_errors: int = 0
    unrouted: int = 0
    replies_completed: int = 0
    by_tag: dict[str, int] = field(default_factory=dict)


class Dispatcher:
    """
    Routing state machine subscribed to the event bus.

    Usage:
        dispatcher = Dispatcher.from_handlers(
            new_idea_nft=idea_handler,
            notification=notification_handler,
            order_store=order_store_handler,
        )
        dispatcher.register(bus)   # idempotent
    """

    def __init__(
        self,
        routes: dict[EventTag, Route],
        handler_timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            routes: Route per event tag; tags without a route are ignored
            handler_timeout: Optional upper bound in seconds per handler call
        """
        self._routes = dict(routes)
        self._handler_timeout = handler_timeout
        self._state = DispatcherState.UNREGISTERED
        self._bus: Optional[EventBus] = None
        self._stats = DispatchStats()

    @classmethod
    def from_handlers(
        cls,
        new_idea_nft: Optional[Handler] = None,
        notification: Optional[Handler] = None,
        order_store: Optional[Handler] = None,
        handler_timeout: Optional[float] = None,
    ) -> "Dispatcher":
        """Build the standard routing table from the three handlers."""
        routes: dict[EventTag, Route] = {}
        if new_idea_nft is not None:
            routes[EventTag.NEW_IDEA_NFT] = Route(
                "new_idea_nft", new_idea_nft, resolves_caller=True
            )
        if notification is not None:
            routes[EventTag.NOTIFICATION] = Route("notification", notification)
        if order_store is not None:
            routes[EventTag.ORDER_STORE] = Route("order_store", order_store)
        return cls(routes, handler_timeout=handler_timeout)

    @property
    def state(self) -> DispatcherState:
        return self._state

    @property
    def is_registered(self) -> bool:
        return self._state == DispatcherState.REGISTERED

    @property
    def stats(self) -> DispatchStats:
        return self._stats

    @property
    def routes(self) -> dict[EventTag, Route]:
        return dict(self._routes)

    def register(self, bus: EventBus) -> bool:
        """
        Subscribe to the bus once.

        Returns:
            True if this call subscribed, False if already registered
        """
        if self._state == DispatcherState.REGISTERED:
            return False

        bus.subscribe(self.dispatch)
        self._bus = bus
        self._state = DispatcherState.REGISTERED
        logger.info(
            f"Dispatcher registered "
            f"(routes: {', '.join(t.value for t in self._routes)})"
        )
        return True

    def unregister(self) -> None:
        """
        Return to UNREGISTERED after the bus was closed.

        The next register() subscribes again.
        """
        if self._state == DispatcherState.UNREGISTERED:
            return
        self._bus = None
        self._state = DispatcherState.UNREGISTERED
        logger.info("Dispatcher unregistered")

    async def dispatch(self, envelope: EventEnvelope) -> None:
        """Deliver one envelope to its handler."""
        route = self._routes.get(envelope.tag)
        if route is None:
            self._stats.unrouted += 1
            if envelope.reply is not None and not envelope.reply.done():
                envelope.reply.set_exception(NoRouteError(envelope.tag))
                logger.warning(f"No route for {envelope.tag.value}, caller rejected")
            else:
                logger.debug(f"No route for {envelope.tag.value}, ignoring")
            return

        self._stats.dispatched += 1
        key = envelope.tag.value
        self._stats.by_tag[key] = self._stats.by_tag.get(key, 0) + 1

        reply = envelope.reply if route.resolves_caller else None

        try:
            result = await self._invoke(route, envelope.payload)
        except asyncio.CancelledError:
            if reply is not None and not reply.done():
                reply.cancel()
            raise
        except Exception as e:
            self._stats.handler_errors += 1
            if reply is not None:
                if not reply.done():
                    reply.set_exception(e)
                logger.warning(
                    f"Handler {route.name} failed for {key} "
                    f"#{envelope.sequence}: {e}"
                )
            else:
                logger.exception(
                    f"Handler {route.name} failed for {key} "
                    f"#{envelope.sequence}: {e}"
                )
            return

        if reply is not None and not reply.done():
            reply.set_result(result)
            self._stats.replies_completed += 1

    async def _invoke(self, route: Route, payload: Any) -> Any:
        if self._handler_timeout is None:
            return await route.handler(payload)
        return await asyncio.wait_for(
            route.handler(payload), timeout=self._handler_timeout
        )
