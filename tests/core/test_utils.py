"""Tests for aitana.core.utils: retry, lazy, timezone, http pool."""

from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from aitana.core.errors import ProviderError, ValidationError
from aitana.core.utils.http_pool import close_all, get_client
from aitana.core.utils.lazy import Lazy
from aitana.core.utils.retry import (
    RetryConfig,
    calculate_backoff,
    classify_error,
    is_retryable_error,
    retry_async,
)
from aitana.core.utils.timezone import ensure_aware, now_shop


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class TestClassifyError:

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("Error 429: too many requests", "rate_limit"),
            ("503 Service Unavailable", "server_error"),
            ("Request timed out", "timeout"),
            ("502 bad gateway", "server_error"),
            ("connection reset by peer", "connection"),
            ("something odd", "unknown"),
        ],
    )
    def test_classify(self, message, expected):
        assert classify_error(Exception(message)) == expected


class TestIsRetryable:

    def test_typed_errors_use_their_flag(self):
        assert is_retryable_error(ProviderError("x", provider="openai")) is True
        assert is_retryable_error(ValidationError("503")) is False

    def test_patterns(self):
        assert is_retryable_error(Exception("rate limit hit")) is True
        assert is_retryable_error(Exception("invalid api key")) is False

    def test_custom_check_wins(self):
        config = RetryConfig(retryable_check=lambda e: isinstance(e, KeyError))
        assert is_retryable_error(KeyError("x"), config) is True
        assert is_retryable_error(Exception("503"), config) is False


class TestBackoff:

    def test_grows_and_caps(self):
        config = RetryConfig(base_delay=1.0, max_delay=5.0, jitter=0.0)
        assert calculate_backoff(1, config=config) == 1.0
        assert calculate_backoff(2, config=config) == 2.0
        assert calculate_backoff(10, config=config) == 5.0


class TestRetryAsync:

    @pytest.mark.asyncio
    async def test_succeeds_after_retry(self, no_backoff):
        func = AsyncMock(side_effect=[Exception("503 unavailable"), "ok"])
        result = await retry_async(func, config=RetryConfig(max_retries=3))
        assert result == "ok"
        assert func.await_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_raises_immediately(self, no_backoff):
        func = AsyncMock(side_effect=ValueError("bad input"))
        with pytest.raises(ValueError):
            await retry_async(func, config=RetryConfig(max_retries=3))
        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_gives_up_after_max(self, no_backoff):
        func = AsyncMock(side_effect=Exception("timeout"))
        retries = []
        with pytest.raises(Exception, match="timeout"):
            await retry_async(
                func,
                config=RetryConfig(max_retries=3),
                on_retry=lambda attempt, err, delay: retries.append(attempt),
            )
        assert func.await_count == 3
        assert retries == [1, 2]


# ---------------------------------------------------------------------------
# Lazy
# ---------------------------------------------------------------------------


class TestLazy:

    def test_builds_once(self):
        calls = []
        lazy = Lazy(lambda: calls.append(1) or object())
        first = lazy.get()
        assert lazy.get() is first
        assert len(calls) == 1
        assert lazy.is_initialized

    def test_reset_all(self):
        lazy = Lazy(object)
        first = lazy.get()
        Lazy.reset_all()
        assert not lazy.is_initialized
        assert lazy.get() is not first


# ---------------------------------------------------------------------------
# Timezone / HTTP pool
# ---------------------------------------------------------------------------


class TestTimezone:

    def test_now_is_aware(self):
        assert now_shop().tzinfo is not None

    def test_ensure_aware(self):
        naive = datetime(2026, 1, 1, 12, 0)
        assert ensure_aware(naive).tzinfo is not None
        aware = now_shop()
        assert ensure_aware(aware) is aware


class TestHttpPool:

    @pytest.mark.asyncio
    async def test_client_is_shared_per_service(self):
        await close_all()
        a = await get_client("sheets")
        b = await get_client("sheets")
        c = await get_client("calendar")
        assert a is b
        assert a is not c
        assert await close_all() == 2
        assert a.is_closed
