from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from aitana.api.deps import get_calendar, require_api_key
from aitana.config import CALENDAR_LIST_LIMIT
from aitana.core.logging import get_logger
from aitana.integrations.google import CalendarClient

_log = get_logger("api.appointments")

router = APIRouter(tags=["Appointments"])


class AppointmentRequest(BaseModel):
    summary: str = Field(min_length=1)
    description: str = ""
    start_time: str
    end_time: str


@router.post("/appointments", dependencies=[Depends(require_api_key)])
async def create_appointment(body: AppointmentRequest, calendar: CalendarClient = Depends(get_calendar)):
    event = await calendar.create_event(
        summary=body.summary,
        description=body.description,
        start_time=body.start_time,
        end_time=body.end_time,
    )
    return {"event": event}


@router.get("/appointments", dependencies=[Depends(require_api_key)])
async def list_appointments(calendar: CalendarClient = Depends(get_calendar)):
    events = await calendar.list_upcoming(limit=CALENDAR_LIST_LIMIT)
    return {"events": events}
