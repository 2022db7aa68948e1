"""Per-visitor session state."""

import time
import uuid
from dataclasses import dataclass, field
from typing import Literal

from aitana.core.booking.memory import DEFAULT_MEMORY_JSON

Role = Literal["user", "assistant"]


def new_session_token() -> str:
    return uuid.uuid4().hex


def is_session_token(value: str | None) -> bool:
    """True for tokens minted by ``new_session_token``."""
    if not value or len(value) != 32:
        return False
    try:
        return uuid.UUID(hex=value).hex == value
    except ValueError:
        return False


@dataclass(frozen=True)
class Turn:
    role: Role
    content: str

    def to_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class Session:
    """One visitor's conversation.

    ``conversation`` is bounded by the rolling window and ``memory`` is always
    a serialized JSON object.
    """

    session_id: str
    memory: str = DEFAULT_MEMORY_JSON
    conversation: list[Turn] = field(default_factory=list)
    thread_handle: str | None = None
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    handed_off_memory: str | None = None
    handoff_count: int = 0

    def touch(self, now: float | None = None) -> None:
        self.last_activity = now if now is not None else time.time()

    @property
    def already_handed_off(self) -> bool:
        return self.handed_off_memory is not None and self.handed_off_memory == self.memory

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "turns": len(self.conversation),
            "memory": self.memory,
            "thread_handle": self.thread_handle,
            "created_at": self.created_at,
            "last_activity": self.last_activity,
            "handoff_count": self.handoff_count,
        }
