"""
Event listener orchestrator.

start(config) sequences:
    SessionBootstrap -> ContractWatcher.attach -> return True      (normal)
    SessionBootstrap -> settle delay -> synthetic NEW_IDEA_NFT
        -> return the idea handler's result                         (test)

The bus and dispatcher are created once and shared by every start() call,
so the dispatcher subscribes exactly once however many sessions are opened.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from .contract_watcher import ContractWatcher, WatchHandle, derive_listenable_events
from .dispatcher import Dispatcher
from .event_bus import EventBus
from .models import SessionConfig
from .session import SessionBootstrap

logger = logging.getLogger(__name__)


class EventListener:
    """
    Top-level entry point for watch sessions.

    Usage:
        listener = EventListener(
            dispatcher=Dispatcher.from_handlers(...),
            bootstrap=SessionBootstrap(),
        )

        await listener.start(SessionConfig(network="polygon", private_key=key))

        # Test mode: returns the idea handler's result for block 42
        result = await listener.start(
            SessionConfig(
                network="polygon",
                private_key=key,
                test=TestDirective(enabled=True, block_number=42),
            )
        )

        await listener.stop()
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        bootstrap: Optional[SessionBootstrap] = None,
        bus: Optional[EventBus] = None,
        test_settle_delay: float = 1.0,
        test_timeout: Optional[float] = 120.0,
    ) -> None:
        """
        Args:
            dispatcher: The single bus subscriber
            bootstrap: Session bootstrap (default settings if omitted)
            bus: Event bus (created if omitted)
            test_settle_delay: Seconds to wait before the synthetic test event
            test_timeout: Upper bound on waiting for the test-mode result
        """
        self._dispatcher = dispatcher
        self._bootstrap = bootstrap or SessionBootstrap()
        self._bus = bus or EventBus()
        self._watcher = ContractWatcher(self._bus, self._dispatcher)
        self._test_settle_delay = test_settle_delay
        self._test_timeout = test_timeout
        self._handles: list[WatchHandle] = []

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def watcher(self) -> ContractWatcher:
        return self._watcher

    @property
    def handles(self) -> list[WatchHandle]:
        return list(self._handles)

    async def start(self, config: SessionConfig) -> Any:
        """
        Open a session and start watching.

        Returns:
            True once listeners are attached, or in test mode the idea
            handler's result for the synthetic event

        Raises:
            UnknownNetworkError, MissingCredentialError, ChainIdMismatchError:
                Bootstrap failed; nothing is attached
            asyncio.TimeoutError: Test-mode result did not arrive in time
            NoRouteError: Test mode without a NEW_IDEA_NFT handler
            Exception: Test-mode idea handler failure
        """
        session = await self._bootstrap.bootstrap(config)

        if not config.is_test:
            handle = self._watcher.attach(session)
            self._handles.append(handle)
            logger.info(
                f"Watching {session.network} with {len(handle.subscriptions)} listener(s)"
            )
            return True

        self._watcher.ensure_registered()
        derive_listenable_events(session.contract.filter_names())

        await asyncio.sleep(self._test_settle_delay)

        reply: asyncio.Future = asyncio.get_running_loop().create_future()
        self._watcher.publish_idea_created(session, config.test.block_number, reply=reply)
        logger.info(f"Test event published for block {config.test.block_number}")

        if self._test_timeout is None:
            return await reply
        return await asyncio.wait_for(reply, timeout=self._test_timeout)

    async def stop(self) -> None:
        """
        Detach all listeners and stop bus delivery.

        The listener can be started again afterwards; the dispatcher
        re-subscribes on the next start().
        """
        for handle in self._handles:
            handle.detach()
        for handle in self._handles:
            for subscription in handle.subscriptions:
                await subscription.wait_closed()
        self._handles.clear()
        await self._bus.close()
        self._dispatcher.unregister()
        logger.info("Event listener stopped")
