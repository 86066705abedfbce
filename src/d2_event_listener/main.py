"""
D2 Event Listener - Main Entry Point

Usage:
    python -m d2_event_listener.main [--network polygon]
    python -m d2_event_listener.main --test --block-number 42

Configuration:
    Environment variables (prefix D2_, or a .env file), see config.py:
        D2_WALLET_PRIVATE_KEY     Wallet private key (required)
        D2_NETWORK                Network to watch (default: polygon)
        D2_DATABASE_URL           PostgreSQL URL; storage disabled if unset
        D2_TELEGRAM_BOT_TOKEN     Telegram bot token for notifications
        D2_TELEGRAM_CHAT_ID       Telegram chat ID for notifications
        D2_LOG_LEVEL              Logging level (DEBUG/INFO/WARNING/ERROR)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import Optional

# Configure logging before imports
LOG_LEVEL = os.environ.get("D2_LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

from d2_event_listener import EventListenerError
from d2_event_listener.config import ListenerSettings
from d2_event_listener.core import (
    Dispatcher,
    EventBus,
    EventListener,
    SessionBootstrap,
    SessionConfig,
    TestDirective,
)
from d2_event_listener.handlers import (
    NewIdeaNFTHandler,
    NotificationHandler,
    OrderStoreHandler,
    TelegramNotifier,
)
from d2_event_listener.storage import (
    Database,
    DatabaseConfig,
    IdeaRepository,
    NotificationRepository,
    OrderRepository,
    ensure_schema,
)


class ListenerApp:
    """
    Wires settings, storage, handlers and the event listener together.

    Owns the process-wide bus and dispatcher.
    """

    def __init__(self, settings: ListenerSettings):
        self.settings = settings
        self._shutdown_event = asyncio.Event()
        self._db: Optional[Database] = None
        self._notifier: Optional[TelegramNotifier] = None
        self.listener: Optional[EventListener] = None

    async def setup(self) -> None:
        settings = self.settings

        idea_repo = notification_repo = order_repo = None
        if settings.database_url:
            self._db = Database(DatabaseConfig(url=settings.database_url))
            await self._db.initialize()
            await ensure_schema(self._db)
            idea_repo = IdeaRepository(self._db)
            notification_repo = NotificationRepository(self._db)
            order_repo = OrderRepository(self._db)
        else:
            logger.warning("D2_DATABASE_URL not set - handler output will not be stored")

        self._notifier = TelegramNotifier(
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
        )

        bus = EventBus()
        dispatcher = Dispatcher.from_handlers(
            new_idea_nft=NewIdeaNFTHandler(
                bus=bus, repository=idea_repo, environment=settings.app_env
            ),
            notification=NotificationHandler(
                repository=notification_repo, notifier=self._notifier
            ),
            order_store=OrderStoreHandler(repository=order_repo),
            handler_timeout=settings.handler_timeout_seconds,
        )
        self.listener = EventListener(
            dispatcher=dispatcher,
            bootstrap=SessionBootstrap(
                contract_address=settings.gate_contract_address,
                rpc_overrides=settings.rpc_urls,
                poll_interval=settings.poll_interval_seconds,
                max_block_range=settings.max_block_range,
                verify_chain_id=settings.verify_chain_id,
            ),
            bus=bus,
            test_settle_delay=settings.test_settle_delay_seconds,
            test_timeout=settings.test_timeout_seconds,
        )

    async def run(self, config: SessionConfig) -> int:
        try:
            await self.setup()
            result = await self.listener.start(config)
            if config.is_test:
                logger.info(f"Test result: {result}")
                await self.listener.bus.join()
                return 0

            self._setup_signal_handlers()
            await self._shutdown_event.wait()
            return 0
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        if self.listener is not None:
            await self.listener.stop()
        if self._notifier is not None:
            await self._notifier.close()
        if self._db is not None:
            await self._db.close()

    def _setup_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self._shutdown_event.set)
            except NotImplementedError:
                # Windows
                pass


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="D2 idea NFT event listener")
    parser.add_argument("--network", help="Network to watch (overrides D2_NETWORK)")
    parser.add_argument(
        "--test",
        action="store_true",
        help="Publish one synthetic IdeaCreated event instead of listening",
    )
    parser.add_argument(
        "--block-number",
        type=int,
        default=0,
        help="Block number for the synthetic test event",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level",
    )
    return parser.parse_args(argv)


async def main_async(args: argparse.Namespace) -> int:
    settings = ListenerSettings()

    config = SessionConfig(
        network=args.network or settings.network,
        private_key=settings.wallet_private_key,
        test=TestDirective(enabled=True, block_number=args.block_number) if args.test else None,
    )

    app = ListenerApp(settings)
    try:
        return await app.run(config)
    except EventListenerError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.log_level:
        logging.getLogger().setLevel(getattr(logging, args.log_level))

    try:
        return asyncio.run(main_async(args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
