"""Timeout values shared by the gateways and adapters.

Reads the same environment variables as ``aitana.config`` without importing
it, so low-level modules stay free of import cycles.
"""

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Timeouts:

    API_CALL: int = _env_int("TIMEOUT_API_CALL", 120)

    HTTP_DEFAULT: float = _env_float("TIMEOUT_HTTP_DEFAULT", 30.0)
    HTTP_CONNECT: float = _env_float("TIMEOUT_HTTP_CONNECT", 5.0)

    RELAY_SEND: float = _env_float("TIMEOUT_RELAY_SEND", 15.0)

    CIRCUIT_BREAKER_DEFAULT: int = 30
    CIRCUIT_BREAKER_RATE_LIMIT: int = 300
    CIRCUIT_BREAKER_SERVER_ERROR: int = 60


TIMEOUTS = Timeouts()

SERVICE_TIMEOUTS: dict[str, float] = {
    "sheets": TIMEOUTS.HTTP_DEFAULT,
    "calendar": TIMEOUTS.HTTP_DEFAULT,
    "default": TIMEOUTS.HTTP_DEFAULT,
}
