"""Circuit breaker for completion gateway calls.

Each gateway class owns one breaker. After five consecutive failures the
breaker opens for a cooldown chosen by the last error type, then lets one
probe request through (half-open).
"""

import time

from aitana.core.logging import get_logger
from aitana.core.utils.timeouts import TIMEOUTS

_log = get_logger("llm.circuit_breaker")

FAILURE_THRESHOLD = 5

COOLDOWN_BY_ERROR = {
    "rate_limit": TIMEOUTS.CIRCUIT_BREAKER_RATE_LIMIT,
    "server_error": TIMEOUTS.CIRCUIT_BREAKER_SERVER_ERROR,
    "timeout": 30,
}


class CircuitBreakerState:
    """States: closed (normal), open (blocking), half-open (probing)."""

    def __init__(self, name: str = "gateway"):
        self.name = name
        self._state = "closed"
        self._failure_count = 0
        self._last_failure_time = 0.0
        self._cooldown_seconds = TIMEOUTS.CIRCUIT_BREAKER_DEFAULT
        self._open_until = 0.0

    @property
    def state(self) -> str:
        return self._state

    def record_failure(self, error_type: str):
        self._failure_count += 1
        self._last_failure_time = time.time()
        self._cooldown_seconds = COOLDOWN_BY_ERROR.get(error_type, TIMEOUTS.CIRCUIT_BREAKER_DEFAULT)

        if self._failure_count >= FAILURE_THRESHOLD or self._state == "half-open":
            self._state = "open"
            self._open_until = time.time() + self._cooldown_seconds
            _log.warning("circuit breaker opened",
                         breaker=self.name,
                         err_type=error_type,
                         cooldown_s=self._cooldown_seconds,
                         failures=self._failure_count)

    def record_success(self):
        self._failure_count = 0
        if self._state != "closed":
            self._state = "closed"
            _log.info("circuit breaker closed", breaker=self.name)

    def can_proceed(self) -> bool:
        if self._state == "closed":
            return True

        if time.time() > self._open_until:
            self._state = "half-open"
            _log.info("circuit breaker half-open", breaker=self.name)
            return True

        return self._state == "half-open"

    def get_remaining_cooldown(self) -> int:
        if self._state == "closed":
            return 0
        return max(0, int(self._open_until - time.time()))

    def reset(self) -> None:
        self._state = "closed"
        self._failure_count = 0
        self._open_until = 0.0


__all__ = [
    "CircuitBreakerState",
    "FAILURE_THRESHOLD",
]
