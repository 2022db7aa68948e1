"""Outbound messaging relay interface.

Handoff summaries and staff notifications leave the service through a relay.
Telegram is the shipped implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable


class Platform(str, Enum):

    TELEGRAM = "telegram"


@dataclass
class RelayHealth:

    healthy: bool
    platform: Platform
    latency_ms: float = 0.0
    details: str = ""


@runtime_checkable
class MessageRelay(Protocol):
    """Delivers plain text to a fixed staff destination."""

    @property
    def platform(self) -> Platform: ...

    async def send(self, text: str) -> None:
        """Deliver ``text``. Raises ``RelayError`` on failure."""
        ...

    async def health_check(self) -> RelayHealth:
        ...

    async def close(self) -> None:
        ...
