"""Read-only access to the artist roster spreadsheet."""

from dataclasses import asdict, dataclass
from urllib.parse import quote

import httpx

from aitana.core.errors import IntegrationError
from aitana.core.logging import get_logger, logged
from aitana.core.utils.http_pool import get_client
from .auth import ServiceAccountToken

_log = get_logger("integrations.sheets")

SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"

ROSTER_COLUMNS = ("name", "specialty", "location", "schedule", "notes")


@dataclass
class Artist:
    name: str = ""
    specialty: str = ""
    location: str = ""
    schedule: str = ""
    notes: str = ""

    @classmethod
    def from_row(cls, row: list) -> "Artist":
        cells = [str(c) for c in row[: len(ROSTER_COLUMNS)]]
        cells += [""] * (len(ROSTER_COLUMNS) - len(cells))
        return cls(*cells)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class SheetsClient:

    def __init__(self, token: ServiceAccountToken, spreadsheet_id: str, client: httpx.AsyncClient | None = None):
        self._token = token
        self._spreadsheet_id = spreadsheet_id
        self._client = client

    async def _http(self) -> httpx.AsyncClient:
        return self._client or await get_client("sheets")

    async def get_values(self, cell_range: str) -> list[list]:
        url = f"{SHEETS_API}/{self._spreadsheet_id}/values/{quote(cell_range, safe='!:')}"
        client = await self._http()
        try:
            resp = await client.get(url, headers=await self._token.headers())
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise IntegrationError(
                f"Sheets read failed ({e.response.status_code})", service="sheets"
            ) from e
        except httpx.HTTPError as e:
            raise IntegrationError(f"Sheets unreachable: {e}", service="sheets") from e
        try:
            body = resp.json()
        except ValueError as e:
            raise IntegrationError("Sheets returned a non-JSON body", service="sheets") from e
        return (body.get("values") if isinstance(body, dict) else None) or []

    @logged(log_args=True)
    async def get_roster(self, cell_range: str) -> list[Artist]:
        """Rows of ``cell_range`` as artists, header row skipped."""
        rows = await self.get_values(cell_range)
        artists = [Artist.from_row(row) for row in rows[1:]]
        _log.info("Roster loaded", range=cell_range, artists=len(artists))
        return artists
