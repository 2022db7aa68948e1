"""Service-account credentials for the Google REST APIs.

Keys arrive as inline JSON in the environment (``GOOGLE_SHEETS_KEY``,
``GOOGLE_CALENDAR_KEY``), the way hosted deployments provide them.
"""

import asyncio
import json

import google.auth.transport.requests
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account

from aitana.core.errors import IntegrationError
from aitana.core.logging import get_logger

_log = get_logger("integrations.google")

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
CALENDAR_SCOPES = ["https://www.googleapis.com/auth/calendar"]


def credentials_from_key(key_json: str, scopes: list[str], service: str) -> service_account.Credentials:
    try:
        info = json.loads(key_json)
    except (TypeError, ValueError) as e:
        raise IntegrationError(f"{service} key is not valid JSON", service=service) from e
    try:
        return service_account.Credentials.from_service_account_info(info, scopes=scopes)
    except (ValueError, KeyError) as e:
        raise IntegrationError(f"{service} key rejected: {e}", service=service) from e


class ServiceAccountToken:
    """Bearer token source that refreshes off the event loop when expired."""

    def __init__(self, credentials: service_account.Credentials, service: str):
        self._credentials = credentials
        self._service = service
        self._lock = asyncio.Lock()

    @classmethod
    def from_key(cls, key_json: str, scopes: list[str], service: str) -> "ServiceAccountToken":
        return cls(credentials_from_key(key_json, scopes, service), service)

    async def token(self) -> str:
        async with self._lock:
            if not self._credentials.valid:
                try:
                    await asyncio.to_thread(
                        self._credentials.refresh,
                        google.auth.transport.requests.Request(),
                    )
                except GoogleAuthError as e:
                    raise IntegrationError(
                        f"{self._service} token refresh failed: {e}", service=self._service
                    ) from e
                _log.debug("Token refreshed", service=self._service)
            return self._credentials.token

    async def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {await self.token()}"}
