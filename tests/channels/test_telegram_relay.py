"""Tests for aitana.channels: Telegram relay and message chunking."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from telegram.error import RetryAfter, TelegramError

from aitana.channels.message_chunker import TELEGRAM_MAX_LENGTH, chunk_for_telegram, chunk_message
from aitana.channels.protocol import MessageRelay, Platform
from aitana.channels.telegram import TelegramRelay
from aitana.core.errors import RelayError
from aitana.core.utils.timeouts import TIMEOUTS


@pytest.fixture
def bot():
    b = MagicMock()
    b.send_message = AsyncMock()
    b.get_me = AsyncMock(return_value=SimpleNamespace(username="clubtattoo_bot"))
    b.shutdown = AsyncMock()
    return b


@pytest.fixture
def relay(bot):
    return TelegramRelay("123:abc", "-100200", bot=bot)


class TestTelegramRelay:

    def test_is_a_message_relay(self, relay):
        assert isinstance(relay, MessageRelay)
        assert relay.platform == Platform.TELEGRAM

    @pytest.mark.parametrize("token, chat_id", [("", "-1"), ("123:abc", ""), (None, None)])
    def test_requires_credentials(self, token, chat_id):
        with pytest.raises(ValueError):
            TelegramRelay(token, chat_id, bot=MagicMock())

    def test_bot_uses_relay_timeouts(self):
        with patch("aitana.channels.telegram.relay.HTTPXRequest") as request_cls, \
                patch("aitana.channels.telegram.relay.Bot") as bot_cls:
            TelegramRelay("123:abc", "-100200")
        kwargs = request_cls.call_args.kwargs
        assert kwargs["read_timeout"] == TIMEOUTS.RELAY_SEND
        assert kwargs["connect_timeout"] == TIMEOUTS.HTTP_CONNECT
        assert bot_cls.call_args.kwargs["request"] is request_cls.return_value

    @pytest.mark.asyncio
    async def test_send(self, relay, bot):
        await relay.send("Booking Summary:\nName: Ana")
        bot.send_message.assert_awaited_once_with(chat_id="-100200", text="Booking Summary:\nName: Ana")

    @pytest.mark.asyncio
    async def test_long_text_is_chunked(self, relay, bot):
        await relay.send("word " * 2000)
        assert bot.send_message.await_count == 3

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self, relay, bot):
        with pytest.raises(RelayError):
            await relay.send("   ")
        bot.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_telegram_error_becomes_relay_error(self, relay, bot):
        bot.send_message.side_effect = TelegramError("Forbidden: bot was blocked")
        with pytest.raises(RelayError, match="Forbidden"):
            await relay.send("hello")

    @pytest.mark.asyncio
    async def test_rate_limit_is_retried_once(self, relay, bot):
        bot.send_message.side_effect = [RetryAfter(0), None]
        await relay.send("hello")
        assert bot.send_message.await_count == 2

    @pytest.mark.asyncio
    async def test_health_check(self, relay, bot):
        health = await relay.health_check()
        assert health.healthy is True
        assert "clubtattoo_bot" in health.details

        bot.get_me.side_effect = TelegramError("Unauthorized")
        assert (await relay.health_check()).healthy is False

    @pytest.mark.asyncio
    async def test_close(self, relay, bot):
        await relay.close()
        bot.shutdown.assert_awaited_once()


class TestChunker:

    def test_short_text_is_one_chunk(self):
        assert chunk_for_telegram("hello") == ["hello"]

    def test_prefers_paragraph_breaks(self):
        text = "a" * 60 + "\n\n" + "b" * 30
        assert chunk_message(text, 80) == ["a" * 60, "b" * 30]

    def test_chunks_respect_limit(self):
        chunks = chunk_for_telegram("x" * (TELEGRAM_MAX_LENGTH * 2 + 10))
        assert all(len(c) <= TELEGRAM_MAX_LENGTH for c in chunks)
        assert "".join(chunks) == "x" * (TELEGRAM_MAX_LENGTH * 2 + 10)
