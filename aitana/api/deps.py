import hmac
from dataclasses import dataclass, field
from typing import Any, List, Optional, TYPE_CHECKING

from fastapi import Request

from aitana.config import ADMIN_API_KEY
from aitana.core.errors import AuthError, IntegrationError, RelayError, TransientError
from aitana.core.logging import get_logger

if TYPE_CHECKING:
    from aitana.channels.protocol import MessageRelay
    from aitana.core.chat_handler import ChatHandler
    from aitana.core.health.health_check import HealthChecker
    from aitana.core.session.store import SessionStore
    from aitana.core.telemetry.metrics import MetricsRegistry
    from aitana.integrations.google import CalendarClient, SheetsClient

_logger = get_logger("api.deps")


def _mask_key(key: Optional[str]) -> str:
    if not key:
        return "<empty>"
    if len(key) <= 8:
        return f"{key[:2]}...{key[-2:]}" if len(key) >= 4 else "***"
    return f"{key[:4]}...{key[-4:]}"


@dataclass
class AppState:
    """Shared services built in the app lifespan."""

    session_store: Optional['SessionStore'] = None
    chat_handler: Optional['ChatHandler'] = None
    relay: Optional['MessageRelay'] = None
    sheets: Optional['SheetsClient'] = None
    calendar: Optional['CalendarClient'] = None

    metrics: Optional['MetricsRegistry'] = None
    health_checker: Optional['HealthChecker'] = None

    background_tasks: List = field(default_factory=list)
    shutdown_event: Any = None

    def reset(self) -> None:
        """Reset all fields to their defaults (in-place, preserves identity)."""
        self.session_store = None
        self.chat_handler = None
        self.relay = None
        self.sheets = None
        self.calendar = None
        self.metrics = None
        self.health_checker = None
        self.background_tasks = []
        self.shutdown_event = None

state = AppState()

def get_state() -> AppState:
    return state

def init_state(**kwargs):
    """Set state attributes by name; unknown names are ignored."""
    for key, value in kwargs.items():
        if hasattr(state, key):
            setattr(state, key, value)

def _extract_bearer_token(auth_header: str) -> Optional[str]:
    if not auth_header:
        return None

    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip()
    return None

def get_request_api_key(request: Request) -> Optional[str]:
    """Bearer token first, then the X-API-Key header."""
    token = _extract_bearer_token(request.headers.get("Authorization", ""))
    if token:
        return token
    return request.headers.get("X-API-Key") or None

def _key_matches(request: Request) -> bool:
    request_key = get_request_api_key(request)
    if not request_key or not ADMIN_API_KEY:
        return False
    return hmac.compare_digest(request_key.encode(), ADMIN_API_KEY.encode())

def require_api_key(request: Request) -> None:
    """Staff endpoints: enforced only when ADMIN_API_KEY is configured."""
    if not ADMIN_API_KEY:
        return
    if not _key_matches(request):
        _logger.warning(
            "Unauthorized request",
            path=str(request.url.path),
            received_key_masked=_mask_key(get_request_api_key(request)),
        )
        raise AuthError("Unauthorized")

def require_admin(request: Request) -> None:
    """Session administration: disabled entirely without ADMIN_API_KEY."""
    if not ADMIN_API_KEY:
        raise AuthError("Admin API disabled", http_status=403)
    require_api_key(request)

def get_chat_handler() -> 'ChatHandler':
    if state.chat_handler is None:
        raise TransientError("Chat service is starting up")
    return state.chat_handler

def get_session_store() -> 'SessionStore':
    if state.session_store is None:
        raise TransientError("Session store unavailable")
    return state.session_store

def get_relay() -> 'MessageRelay':
    if state.relay is None:
        raise RelayError("Messaging relay is not configured")
    return state.relay

def get_sheets() -> 'SheetsClient':
    if state.sheets is None:
        raise IntegrationError("Google Sheets is not configured", service="sheets")
    return state.sheets

def get_calendar() -> 'CalendarClient':
    if state.calendar is None:
        raise IntegrationError("Google Calendar is not configured", service="calendar")
    return state.calendar
