import asyncio
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar

from aitana.core.errors import AitanaError
from aitana.core.logging import get_logger

_log = get_logger("retry")

T = TypeVar("T")

# first match wins
_ERROR_CLASSES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("rate_limit", ("429", "rate limit", "rate_limit")),
    ("server_error", ("503", "unavailable", "overloaded")),
    ("timeout", ("timeout", "timed out")),
    ("server_error", ("500", "502")),
    ("connection", ("connection reset", "connection error", "broken pipe")),
)

# server hiccups and timeouts get a little more room than the plain curve
_BACKOFF_FACTOR = {"server_error": 1.5, "timeout": 1.2}


@dataclass
class RetryConfig:
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter: float = 0.3
    retryable_check: Callable[[Exception], bool] | None = None
    retryable_patterns: frozenset[str] = field(
        default_factory=lambda: frozenset(p for _, patterns in _ERROR_CLASSES for p in patterns)
    )


DEFAULT_RETRY_CONFIG = RetryConfig()


def is_retryable_error(error: Exception, config: RetryConfig | None = None) -> bool:
    """Typed errors carry their own flag; anything else is matched on its message."""
    config = config or DEFAULT_RETRY_CONFIG
    if config.retryable_check is not None:
        return config.retryable_check(error)
    if isinstance(error, AitanaError):
        return error.is_retryable
    text = str(error).lower()
    return any(p in text for p in config.retryable_patterns)


def classify_error(error: Exception) -> str:
    text = str(error).lower()
    for kind, patterns in _ERROR_CLASSES:
        if any(p in text for p in patterns):
            return kind
    return "unknown"


def calculate_backoff(attempt: int, error_type: str = "unknown", config: RetryConfig | None = None) -> float:
    config = config or DEFAULT_RETRY_CONFIG
    delay = config.base_delay * 2 ** (attempt - 1) * _BACKOFF_FACTOR.get(error_type, 1.0)
    if config.jitter:
        delay += delay * random.uniform(0, config.jitter)
    return min(delay, config.max_delay)


async def retry_async(
    func: Callable[..., Any],
    *args,
    config: RetryConfig | None = None,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
    **kwargs,
) -> Any:
    """Await ``func(*args, **kwargs)``, retrying retryable failures with backoff.

    The last error is re-raised once ``config.max_retries`` attempts are spent
    or as soon as a non-retryable error is seen.
    """
    config = config or DEFAULT_RETRY_CONFIG
    attempt = 0
    while True:
        attempt += 1
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if attempt >= config.max_retries or not is_retryable_error(e, config):
                raise
            kind = classify_error(e)
            delay = calculate_backoff(attempt, kind, config)
            _log.warning(
                "Retrying",
                attempt=f"{attempt}/{config.max_retries}",
                error_type=kind,
                delay=round(delay, 2),
                error=str(e)[:100],
            )
            if on_retry is not None:
                on_retry(attempt, e, delay)
            await asyncio.sleep(delay)
