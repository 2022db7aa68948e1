"""Session store keyed by the visitor's session token."""

import threading
import time
from typing import Protocol, runtime_checkable

from aitana.core.logging import get_logger
from .models import Session

_log = get_logger("session.store")


@runtime_checkable
class SessionStore(Protocol):

    def get(self, token: str) -> Session | None: ...

    def get_or_create(self, token: str) -> Session: ...

    def save(self, session: Session) -> None: ...

    def evict(self, token: str) -> bool: ...

    def reap_idle(self, now: float | None = None) -> int: ...

    def tokens(self) -> list[str]: ...

    def __len__(self) -> int: ...


class InMemorySessionStore:
    """Process-local store.

    Creation, eviction and reaping hold the lock. Two requests for the same
    token are expected to arrive one after another, so turns are not
    serialized per session (last write wins).
    """

    def __init__(self, idle_timeout: float | None = None):
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()
        self.idle_timeout = idle_timeout

    def get(self, token: str) -> Session | None:
        return self._sessions.get(token)

    def get_or_create(self, token: str) -> Session:
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                session = Session(session_id=token)
                self._sessions[token] = session
                _log.info("Session created", session=token[:8], active=len(self._sessions))
            else:
                session.touch()
        return session

    def save(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.session_id] = session

    def evict(self, token: str) -> bool:
        with self._lock:
            removed = self._sessions.pop(token, None)
        if removed is not None:
            _log.info("Session evicted", session=token[:8])
        return removed is not None

    def reap_idle(self, now: float | None = None) -> int:
        """Drop sessions idle longer than ``idle_timeout``. Returns the count."""
        if self.idle_timeout is None:
            return 0
        now = now if now is not None else time.time()
        cutoff = now - self.idle_timeout
        with self._lock:
            stale = [t for t, s in self._sessions.items() if s.last_activity < cutoff]
            for token in stale:
                del self._sessions[token]
        if stale:
            _log.info("Idle sessions reaped", count=len(stale), remaining=len(self._sessions))
        return len(stale)

    def tokens(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)
