"""
Telegram notifier for user-facing notifications.

Sends messages with deduplication so a replayed event does not notify twice.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp

logger = logging.getLogger(__name__)


@dataclass
class SentRecord:
    """Tracks when a message key was last sent."""

    key: str
    last_sent: float  # Unix timestamp
    count: int = 1


class TelegramNotifier:
    """
    Sends notifications via the Telegram Bot API.

    Usage:
        notifier = TelegramNotifier(bot_token="...", chat_id="...")
        await notifier.send(
            title="Idea created",
            message="NFT 7 at block 100",
            dedup_key="idea-created:7:100",
        )
        await notifier.close()
    """

    API_URL = "https://api.telegram.org"
    DEFAULT_COOLDOWN = 300  # 5 minutes

    def __init__(
        self,
        bot_token: Optional[str] = None,
        chat_id: Optional[str] = None,
        cooldown_seconds: int = DEFAULT_COOLDOWN,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 10.0,
    ) -> None:
        """
        Args:
            bot_token: Bot token from @BotFather
            chat_id: Chat ID to send messages to
            cooldown_seconds: Window in which a repeated dedup key is dropped
            session: Optional aiohttp session (created on first send if omitted)
            timeout: Request timeout in seconds
        """
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._cooldown = cooldown_seconds
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._sent: dict[str, SentRecord] = {}

    @property
    def is_configured(self) -> bool:
        return bool(self._bot_token and self._chat_id)

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def send(
        self,
        title: str,
        message: str,
        dedup_key: Optional[str] = None,
    ) -> bool:
        """
        Send a message.

        Returns:
            True if sent, False if deduplicated, unconfigured or failed
        """
        if dedup_key and not self._should_send(dedup_key):
            logger.debug(f"Deduplicated notification: {dedup_key}")
            return False

        if not self.is_configured:
            logger.debug("Telegram credentials not configured")
            return False

        sent = await self._post(f"*{title}*\n\n{message.strip()}")

        if sent and dedup_key:
            self._record_sent(dedup_key)
        return sent

    def _should_send(self, key: str) -> bool:
        record = self._sent.get(key)
        if record is None:
            return True
        return (time.time() - record.last_sent) >= self._cooldown

    def _record_sent(self, key: str) -> None:
        now = time.time()
        if key in self._sent:
            self._sent[key].last_sent = now
            self._sent[key].count += 1
        else:
            self._sent[key] = SentRecord(key=key, last_sent=now)

    async def _post(self, text: str) -> bool:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)

        url = f"{self.API_URL}/bot{self._bot_token}/sendMessage"
        payload: dict[str, Any] = {
            "chat_id": self._chat_id,
            "text": text,
            "parse_mode": "Markdown",
        }

        try:
            async with self._session.post(url, json=payload) as response:
                response.raise_for_status()
            logger.info(f"Sent Telegram notification: {text[:50]}...")
            return True
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to send Telegram notification: {e}")
            return False
