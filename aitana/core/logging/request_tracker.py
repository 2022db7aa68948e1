"""One summary log line per chat turn.

``track_request`` opens a tracker bound to the current context; the gateway,
the reply parser and the handoff dispatcher fill it in through the ``log_*``
helpers, and the summary is logged when the turn ends.
"""

import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .formatters import mask_contacts
from .structured_logger import get_logger

_logger = get_logger("core.tracker")

_active: ContextVar[Optional["RequestTracker"]] = ContextVar("active_turn", default=None)


@dataclass
class RequestTracker:
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:6])
    input_preview: str = ""
    started: float = field(default_factory=time.monotonic)

    session_id: str = ""
    window_turns: int = 0
    gateway_provider: str = ""
    gateway_ms: float = 0
    block_status: str = ""
    memory_chars: int = 0
    handoff: str = ""

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.started) * 1000

    def summary(self, status: str) -> dict:
        return {
            "req": self.request_id,
            "input": self.input_preview,
            "session": self.session_id[:8],
            "window": self.window_turns,
            "provider": self.gateway_provider or None,
            "gateway_ms": round(self.gateway_ms),
            "block": self.block_status or None,
            "memory": self.memory_chars,
            "handoff": self.handoff or None,
            "status": status,
            "total_ms": round(self.elapsed_ms()),
        }


def _preview(text: str, width: int = 30) -> str:
    flat = mask_contacts(" ".join(text.split()))
    return flat if len(flat) <= width else flat[:width] + "..."


def start_request(user_input: str) -> RequestTracker:
    tracker = RequestTracker(input_preview=_preview(user_input))
    _active.set(tracker)
    return tracker


def get_tracker() -> Optional[RequestTracker]:
    return _active.get()


def log_gateway(provider: str, elapsed_ms: float) -> None:
    if (t := get_tracker()) is not None:
        t.gateway_provider, t.gateway_ms = provider, elapsed_ms


def log_parse(block_status: str, memory_chars: int) -> None:
    if (t := get_tracker()) is not None:
        t.block_status, t.memory_chars = block_status, memory_chars


def log_handoff(outcome: str) -> None:
    if (t := get_tracker()) is not None:
        t.handoff = outcome


def end_request(status: str = "done") -> None:
    tracker = get_tracker()
    if tracker is None:
        return
    _logger.info("Turn summary", **tracker.summary(status))
    _active.set(None)


@contextmanager
def track_request(user_input: str) -> Iterator[RequestTracker]:
    tracker = start_request(user_input)
    try:
        yield tracker
    except Exception as e:
        _logger.error("Turn failed", req=tracker.request_id, error=str(e)[:100])
        end_request(status="error")
        raise
    end_request()
