"""
Application-wide error hierarchy.

Every error raised across a component boundary carries a stable ``code``,
an ``http_status`` for the HTTP surface, and an ``is_retryable`` flag read by
the retry helper.
"""

import time
from abc import ABC, abstractmethod
from typing import Any


class AitanaError(Exception, ABC):
    """Abstract base for all typed application errors."""

    @abstractmethod
    def _abstract_guard(self) -> None: ...

    @property
    @abstractmethod
    def is_retryable(self) -> bool: ...

    @property
    @abstractmethod
    def http_status(self) -> int: ...

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or type(self).__name__.upper()
        self.timestamp = time.time()
        self.request_id = request_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "is_retryable": self.is_retryable,
            "http_status": self.http_status,
            "timestamp": self.timestamp,
            "request_id": self.request_id,
        }


class TransientError(AitanaError):
    is_retryable: bool = True
    http_status: int = 503

    def _abstract_guard(self) -> None: ...

    def __init__(self, message: str, *, code: str = "TRANSIENT", **kw: Any) -> None:
        super().__init__(message, code=code, **kw)


class ValidationError(AitanaError):
    """Rejected input. Raised before any session mutation or gateway call."""

    is_retryable: bool = False
    http_status: int = 400

    def _abstract_guard(self) -> None: ...

    def __init__(
        self, message: str, *, code: str = "VALIDATION", field: str | None = None, **kw: Any
    ) -> None:
        super().__init__(message, code=code, **kw)
        self.field = field


class AuthError(AitanaError):
    is_retryable: bool = False

    def _abstract_guard(self) -> None: ...

    def __init__(
        self, message: str, *, code: str = "AUTH", http_status: int = 401, **kw: Any
    ) -> None:
        super().__init__(message, code=code, **kw)
        self._http_status = http_status

    @property  # type: ignore[override]
    def http_status(self) -> int:
        return self._http_status


class ProviderError(AitanaError):
    """Completion gateway failure (transport, auth, rate limit, failed run)."""

    is_retryable: bool = True
    http_status: int = 502

    def _abstract_guard(self) -> None: ...

    def __init__(
        self, message: str, *, provider: str, code: str = "PROVIDER", **kw: Any
    ) -> None:
        super().__init__(message, code=code, **kw)
        self.provider = provider


class GatewayTimeoutError(AitanaError):
    """A stateful thread run did not reach a terminal status in time."""

    is_retryable: bool = True
    http_status: int = 504

    def _abstract_guard(self) -> None: ...

    def __init__(
        self, message: str, *, timeout_ms: int, code: str = "GATEWAY_TIMEOUT", **kw: Any
    ) -> None:
        super().__init__(message, code=code, **kw)
        self.timeout_ms = timeout_ms


class RelayError(AitanaError):
    """Messaging relay (Telegram) failed to deliver."""

    is_retryable: bool = True
    http_status: int = 502

    def _abstract_guard(self) -> None: ...

    def __init__(
        self, message: str, *, channel: str = "telegram", code: str = "RELAY", **kw: Any
    ) -> None:
        super().__init__(message, code=code, **kw)
        self.channel = channel


class IntegrationError(AitanaError):
    """Google Sheets / Calendar call failed or is not configured."""

    is_retryable: bool = False
    http_status: int = 502

    def _abstract_guard(self) -> None: ...

    def __init__(
        self, message: str, *, service: str, code: str = "INTEGRATION", **kw: Any
    ) -> None:
        super().__init__(message, code=code, **kw)
        self.service = service
