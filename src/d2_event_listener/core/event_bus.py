"""
In-process event bus.

Single-subscriber publish/subscribe channel keyed by EventTag. Publishing
never blocks: envelopes go into an unbounded FIFO queue that one worker
task drains, awaiting the subscriber for each envelope in publish order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from d2_event_listener import EventListenerError

from .models import PAYLOAD_TYPES, EventEnvelope, EventTag

logger = logging.getLogger(__name__)


class InvalidPayloadError(EventListenerError):
    """Payload does not match the tag's declared payload type."""
    pass


class AlreadySubscribedError(EventListenerError):
    """A different subscriber is already registered on the bus."""
    pass


Subscriber = Callable[[EventEnvelope], Awaitable[None]]


class EventBus:
    """
    Single-subscriber event bus.

    Usage:
        bus = EventBus()
        bus.subscribe(dispatcher.dispatch)   # inside a running loop

        bus.publish(EventTag.NOTIFICATION, payload)

        await bus.join()    # wait until everything queued was delivered
        await bus.close()
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[EventEnvelope] = asyncio.Queue()
        self._subscriber: Optional[Subscriber] = None
        self._worker: Optional[asyncio.Task] = None
        self._sequence = 0
        self._delivered = 0

    @property
    def has_subscriber(self) -> bool:
        return self._subscriber is not None

    @property
    def published_count(self) -> int:
        """Number of envelopes accepted by publish()."""
        return self._sequence

    @property
    def delivered_count(self) -> int:
        """Number of envelopes handed to the subscriber."""
        return self._delivered

    @property
    def pending(self) -> int:
        """Envelopes waiting for delivery."""
        return self._queue.qsize()

    def subscribe(self, handler: Subscriber) -> None:
        """
        Register the single subscriber and start delivery.

        Must be called from a running event loop.

        Raises:
            AlreadySubscribedError: If a different subscriber is registered
        """
        if self._subscriber is not None:
            if self._subscriber == handler:
                return
            raise AlreadySubscribedError(
                "Event bus already has a subscriber; only one is allowed"
            )

        self._subscriber = handler
        self._worker = asyncio.get_running_loop().create_task(
            self._drain(), name="event_bus_drain"
        )
        logger.debug("Event bus subscriber registered")

    def publish(
        self,
        tag: EventTag,
        payload: Any,
        reply: Optional[asyncio.Future] = None,
    ) -> EventEnvelope:
        """
        Queue an event for delivery.

        Args:
            tag: Event tag
            payload: Instance of the tag's payload type
            reply: Optional future completed by the subscriber

        Returns:
            The queued envelope

        Raises:
            InvalidPayloadError: If tag is unknown or payload has the wrong type
        """
        expected = PAYLOAD_TYPES.get(tag) if isinstance(tag, EventTag) else None
        if expected is None:
            raise InvalidPayloadError(f"Unknown event tag: {tag!r}")
        if not isinstance(payload, expected):
            raise InvalidPayloadError(
                f"{tag.value} expects {expected.__name__}, "
                f"got {type(payload).__name__}"
            )

        self._sequence += 1
        envelope = EventEnvelope(
            tag=tag,
            payload=payload,
            sequence=self._sequence,
            reply=reply,
        )
        self._queue.put_nowait(envelope)
        logger.debug(f"Published {tag.value} #{envelope.sequence}")
        return envelope

    async def join(self) -> None:
        """Wait until every queued envelope has been delivered."""
        await self._queue.join()

    async def close(self) -> None:
        """
        Stop the delivery worker and release the subscriber slot.

        Undelivered envelopes are dropped and their reply futures cancelled.
        A new subscriber may subscribe afterwards.
        """
        if self._worker is not None:
            self._worker.cancel()
            await asyncio.gather(self._worker, return_exceptions=True)
            self._worker = None

        dropped = 0
        while not self._queue.empty():
            envelope = self._queue.get_nowait()
            if envelope.reply is not None and not envelope.reply.done():
                envelope.reply.cancel()
            self._queue.task_done()
            dropped += 1

        self._subscriber = None
        logger.debug(f"Event bus closed ({dropped} undelivered envelope(s) dropped)")

    async def _drain(self) -> None:
        while True:
            envelope = await self._queue.get()
            try:
                self._delivered += 1
                await self._subscriber(envelope)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # Subscriber is expected to catch handler errors itself
                logger.exception(
                    f"Subscriber failed for {envelope.tag.value} "
                    f"#{envelope.sequence}: {e}"
                )
            finally:
                self._queue.task_done()
