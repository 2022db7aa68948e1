"""Booking handoff: relay the gathered details to shop staff."""

from datetime import timedelta

from aitana.channels.protocol import MessageRelay
from aitana.config import APPOINTMENT_DEFAULT_MINUTES, HANDOFF_CREATE_CALENDAR_EVENT
from aitana.core.errors import AitanaError
from aitana.core.logging import get_logger, log_handoff
from aitana.core.logging.error_monitor import ErrorMonitor, error_monitor as default_error_monitor
from aitana.core.session.models import Session
from aitana.core.telemetry.metrics import MetricsRegistry
from aitana.integrations.google.calendar import CalendarClient, parse_iso
from .memory import MemoryRecord

_log = get_logger("booking.handoff")

NOT_SPECIFIED = "(not specified)"


def render_summary(memory_json: str) -> str:
    """Fixed-format summary of a memory record.

    Raises:
        ValueError: ``memory_json`` is not a JSON object.
    """
    record = MemoryRecord.from_json(memory_json)
    return (
        "Booking Summary:\n"
        f"Name: {record.name}\n"
        f"Email: {record.email}\n"
        f"Phone: {record.phone}\n"
        f"Location: {record.location}\n"
        f"Artist: {record.artist}\n"
        f"Price Range: {record.price_range}\n"
        f"Description: {record.description}\n"
        f"Appointment Date: {record.date or NOT_SPECIFIED}\n"
    )


class HandoffDispatcher:
    """Relays a booking summary when a reply carries the completion marker.

    A repeat marker with unchanged memory is skipped. Failures are logged and
    reported to the error monitor, never raised: the visitor still gets the
    reply.
    """

    def __init__(
        self,
        relay: MessageRelay | None,
        calendar: CalendarClient | None = None,
        error_monitor: ErrorMonitor | None = None,
        metrics: MetricsRegistry | None = None,
        create_calendar_event: bool = HANDOFF_CREATE_CALENDAR_EVENT,
        appointment_minutes: int = APPOINTMENT_DEFAULT_MINUTES,
    ):
        self.relay = relay
        self.calendar = calendar
        self.error_monitor = error_monitor or default_error_monitor
        self.metrics = metrics
        self.create_calendar_event = create_calendar_event
        self.appointment_minutes = appointment_minutes

    def _count(self, name: str) -> None:
        if self.metrics is not None:
            self.metrics.counter(name, name).inc()

    async def maybe_dispatch(self, session: Session, should_handoff: bool) -> str | None:
        """Returns the relayed summary, or None when nothing was sent."""
        if not should_handoff:
            return None

        if session.already_handed_off:
            _log.info("Handoff skipped (unchanged memory)", session=session.session_id[:8])
            log_handoff("duplicate")
            return None

        if self.relay is None:
            _log.warning("Handoff requested but no relay configured", session=session.session_id[:8])
            self.error_monitor.record("relay", "relay not configured")
            self._count("handoff_failures_total")
            log_handoff("unconfigured")
            return None

        try:
            summary = render_summary(session.memory)
            await self.relay.send(summary)
        except (AitanaError, ValueError) as e:
            _log.error("Handoff failed", session=session.session_id[:8], error=str(e)[:200])
            self.error_monitor.record("relay", str(e))
            self._count("handoff_failures_total")
            log_handoff("failed")
            return None

        session.handed_off_memory = session.memory
        session.handoff_count += 1
        self._count("handoffs_total")
        log_handoff("sent")
        _log.info("Handoff sent", session=session.session_id[:8], handoff=session.handoff_count)

        if self.create_calendar_event and self.calendar is not None:
            await self._hold_calendar_slot(session)

        return summary

    async def _hold_calendar_slot(self, session: Session) -> None:
        record = MemoryRecord.from_json(session.memory)
        if not record.date:
            return
        try:
            start = parse_iso(record.date, "date")
        except AitanaError:
            _log.info("Calendar hold skipped (date not ISO)", date=record.date[:40])
            return

        end = start + timedelta(minutes=self.appointment_minutes)
        description = render_summary(session.memory)
        try:
            await self.calendar.create_event(
                summary=f"Hold: {record.name or 'Club Tattoo client'}",
                description=description,
                start_time=start.isoformat(),
                end_time=end.isoformat(),
            )
        except (AitanaError, ValueError) as e:
            _log.error("Calendar hold failed", session=session.session_id[:8], error=str(e)[:200])
            self.error_monitor.record("calendar", str(e))
