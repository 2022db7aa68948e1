"""Telegram relay for booking summaries and staff notifications."""

from __future__ import annotations

import asyncio
import time

from telegram import Bot
from telegram.error import RetryAfter, TelegramError
from telegram.request import HTTPXRequest

from aitana.channels.message_chunker import chunk_for_telegram
from aitana.channels.protocol import Platform, RelayHealth
from aitana.core.errors import RelayError
from aitana.core.logging import get_logger
from aitana.core.utils.timeouts import TIMEOUTS

_log = get_logger("channels.telegram")


def _bot_request() -> HTTPXRequest:
    return HTTPXRequest(
        connect_timeout=TIMEOUTS.HTTP_CONNECT,
        read_timeout=TIMEOUTS.RELAY_SEND,
        write_timeout=TIMEOUTS.RELAY_SEND,
    )


class TelegramRelay:
    """Sends text to one configured Telegram chat through the Bot API.

    No polling: the bot only ever sends.
    """

    def __init__(self, token: str, chat_id: str, bot: Bot | None = None) -> None:
        if not token or not chat_id:
            raise ValueError("TelegramRelay requires a bot token and chat id")
        self._chat_id = chat_id
        self._bot = bot or Bot(token=token, request=_bot_request())

    @property
    def platform(self) -> Platform:
        return Platform.TELEGRAM

    async def send(self, text: str) -> None:
        if not text or not text.strip():
            raise RelayError("Refusing to relay an empty message")

        for chunk in chunk_for_telegram(text):
            await self._send_chunk(chunk)
        _log.info("TELEGRAM relayed", chars=len(text), chat=self._chat_id)

    async def _send_chunk(self, chunk: str) -> None:
        try:
            await self._bot.send_message(chat_id=self._chat_id, text=chunk)
        except RetryAfter as e:
            delay = e.retry_after if isinstance(e.retry_after, (int, float)) else e.retry_after.total_seconds()
            _log.warning("TELEGRAM rate limited", retry_after=delay)
            await asyncio.sleep(delay)
            try:
                await self._bot.send_message(chat_id=self._chat_id, text=chunk)
            except TelegramError as retry_error:
                raise RelayError(f"Telegram send failed: {retry_error}") from retry_error
        except TelegramError as e:
            raise RelayError(f"Telegram send failed: {e}") from e

    async def health_check(self) -> RelayHealth:
        t0 = time.monotonic()
        try:
            me = await self._bot.get_me()
        except TelegramError as e:
            return RelayHealth(
                healthy=False,
                platform=Platform.TELEGRAM,
                latency_ms=(time.monotonic() - t0) * 1000,
                details=str(e),
            )
        return RelayHealth(
            healthy=True,
            platform=Platform.TELEGRAM,
            latency_ms=(time.monotonic() - t0) * 1000,
            details=f"bot=@{me.username}",
        )

    async def close(self) -> None:
        try:
            await self._bot.shutdown()
        except TelegramError as e:
            _log.warning("TELEGRAM shutdown failed", error=str(e))
