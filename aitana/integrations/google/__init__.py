from .auth import CALENDAR_SCOPES, SHEETS_SCOPES, ServiceAccountToken, credentials_from_key
from .calendar import CalendarClient
from .sheets import Artist, SheetsClient

__all__ = [
    "CALENDAR_SCOPES",
    "SHEETS_SCOPES",
    "ServiceAccountToken",
    "credentials_from_key",
    "CalendarClient",
    "Artist",
    "SheetsClient",
]
