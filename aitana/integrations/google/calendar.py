"""Google Calendar events for booked appointments."""

from datetime import datetime, timezone
from urllib.parse import quote

import httpx

from aitana.core.errors import IntegrationError, ValidationError
from aitana.core.logging import get_logger, logged
from aitana.core.utils.http_pool import get_client
from aitana.core.utils.timezone import ensure_aware
from .auth import ServiceAccountToken

_log = get_logger("integrations.calendar")

CALENDAR_API = "https://www.googleapis.com/calendar/v3/calendars"


def parse_iso(value: str, field: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError) as e:
        raise ValidationError(f"{field} must be an ISO 8601 date-time", field=field) from e
    return ensure_aware(parsed)


class CalendarClient:

    def __init__(self, token: ServiceAccountToken, calendar_id: str, client: httpx.AsyncClient | None = None):
        self._token = token
        self._calendar_id = calendar_id
        self._client = client

    @property
    def _events_url(self) -> str:
        return f"{CALENDAR_API}/{quote(self._calendar_id, safe='@.')}/events"

    async def _request(self, method: str, **kwargs) -> dict:
        client = self._client or await get_client("calendar")
        try:
            resp = await client.request(method, self._events_url, headers=await self._token.headers(), **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise IntegrationError(
                f"Calendar {method} failed ({e.response.status_code})", service="calendar"
            ) from e
        except httpx.HTTPError as e:
            raise IntegrationError(f"Calendar unreachable: {e}", service="calendar") from e
        try:
            body = resp.json()
        except ValueError as e:
            raise IntegrationError(f"Calendar {method} returned a non-JSON body", service="calendar") from e
        if not isinstance(body, dict):
            raise IntegrationError(f"Calendar {method} returned an unexpected body", service="calendar")
        return body

    async def create_event(
        self,
        summary: str,
        description: str,
        start_time: str,
        end_time: str,
    ) -> dict:
        """Insert an event. Times are ISO 8601 strings with an offset."""
        start = parse_iso(start_time, "start_time")
        end = parse_iso(end_time, "end_time")
        if end <= start:
            raise ValidationError("end_time must be after start_time", field="end_time")

        event = {
            "summary": summary,
            "description": description,
            "start": {"dateTime": start.isoformat()},
            "end": {"dateTime": end.isoformat()},
        }
        created = await self._request("POST", json=event)
        _log.info("Calendar event created", event_id=created.get("id"), start=event["start"]["dateTime"])
        return created

    @logged()
    async def list_upcoming(self, limit: int = 10, now: datetime | None = None) -> list[dict]:
        now = now or datetime.now(timezone.utc)
        params = {
            "timeMin": now.isoformat(),
            "maxResults": limit,
            "singleEvents": "true",
            "orderBy": "startTime",
        }
        data = await self._request("GET", params=params)
        return data.get("items") or []
