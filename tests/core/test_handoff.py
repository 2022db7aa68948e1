"""Tests for aitana.core.booking.handoff."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from aitana.core.booking.handoff import HandoffDispatcher, render_summary
from aitana.core.errors import IntegrationError, RelayError
from aitana.core.logging.error_monitor import ErrorMonitor
from aitana.core.session.models import Session
from aitana.core.telemetry.metrics import build_registry
from aitana.integrations.google.calendar import CalendarClient

BOOKED = (
    '{"name":"Ana","email":"ana@example.com","phone":"555-0100","location":"Tempe",'
    '"artist":"Marco","priceRange":"300-500","description":"koi on forearm",'
    '"date":"2026-11-20T14:00:00-07:00","alreadyGreeted":true}'
)


class _StaticToken:

    async def headers(self):
        return {"Authorization": "Bearer test-token"}


@pytest.fixture
def relay():
    r = MagicMock()
    r.send = AsyncMock()
    return r


@pytest.fixture
def monitor():
    return ErrorMonitor(webhook_url="")


@pytest.fixture
def session():
    return Session(session_id="a" * 32, memory=BOOKED)


class TestRenderSummary:

    def test_full_record(self):
        summary = render_summary(BOOKED)
        assert summary.startswith("Booking Summary:\n")
        assert "Name: Ana\n" in summary
        assert "Price Range: 300-500\n" in summary
        assert "Appointment Date: 2026-11-20T14:00:00-07:00\n" in summary

    def test_missing_date(self):
        summary = render_summary('{"name":"Ana"}')
        assert "Appointment Date: (not specified)" in summary
        assert "Email: \n" in summary

    def test_rejects_non_object(self):
        with pytest.raises(ValueError):
            render_summary("not json")


class TestHandoffDispatcher:

    @pytest.mark.asyncio
    async def test_no_marker_does_nothing(self, relay, monitor, session):
        dispatcher = HandoffDispatcher(relay, error_monitor=monitor)
        assert await dispatcher.maybe_dispatch(session, False) is None
        relay.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sends_summary(self, relay, monitor, session):
        metrics = build_registry()
        dispatcher = HandoffDispatcher(relay, error_monitor=monitor, metrics=metrics)
        summary = await dispatcher.maybe_dispatch(session, True)
        relay.send.assert_awaited_once_with(summary)
        assert session.handoff_count == 1
        assert session.handed_off_memory == BOOKED
        assert metrics.counter("handoffs_total", "").value == 1

    @pytest.mark.asyncio
    async def test_repeat_marker_is_deduplicated(self, relay, monitor, session):
        dispatcher = HandoffDispatcher(relay, error_monitor=monitor)
        await dispatcher.maybe_dispatch(session, True)
        assert await dispatcher.maybe_dispatch(session, True) is None
        assert relay.send.await_count == 1

    @pytest.mark.asyncio
    async def test_changed_memory_sends_again(self, relay, monitor, session):
        dispatcher = HandoffDispatcher(relay, error_monitor=monitor)
        await dispatcher.maybe_dispatch(session, True)
        session.memory = BOOKED.replace("Marco", "Lena")
        await dispatcher.maybe_dispatch(session, True)
        assert relay.send.await_count == 2
        assert session.handoff_count == 2

    @pytest.mark.asyncio
    async def test_relay_failure_is_swallowed(self, relay, monitor, session):
        relay.send.side_effect = RelayError("Telegram send failed: boom")
        metrics = build_registry()
        dispatcher = HandoffDispatcher(relay, error_monitor=monitor, metrics=metrics)

        assert await dispatcher.maybe_dispatch(session, True) is None
        assert session.handed_off_memory is None
        assert metrics.counter("handoff_failures_total", "").value == 1
        assert monitor.get_stats()["relay"]["count"] == 1

    @pytest.mark.asyncio
    async def test_failed_handoff_retries_on_next_marker(self, relay, monitor, session):
        relay.send.side_effect = [RelayError("down"), None]
        dispatcher = HandoffDispatcher(relay, error_monitor=monitor)
        await dispatcher.maybe_dispatch(session, True)
        assert await dispatcher.maybe_dispatch(session, True) is not None
        assert session.handoff_count == 1

    @pytest.mark.asyncio
    async def test_without_relay(self, monitor, session):
        dispatcher = HandoffDispatcher(None, error_monitor=monitor)
        assert await dispatcher.maybe_dispatch(session, True) is None
        assert "relay" in monitor.get_stats()


class TestCalendarHold:

    @pytest.mark.asyncio
    async def test_creates_hold_for_iso_date(self, relay, monitor, session):
        calendar = MagicMock()
        calendar.create_event = AsyncMock(return_value={"id": "evt1"})
        dispatcher = HandoffDispatcher(
            relay, calendar=calendar, error_monitor=monitor,
            create_calendar_event=True, appointment_minutes=90,
        )
        await dispatcher.maybe_dispatch(session, True)

        kwargs = calendar.create_event.await_args.kwargs
        assert kwargs["summary"] == "Hold: Ana"
        assert kwargs["start_time"] == "2026-11-20T14:00:00-07:00"
        assert kwargs["end_time"] == "2026-11-20T15:30:00-07:00"

    @pytest.mark.asyncio
    async def test_skips_free_text_date(self, relay, monitor):
        calendar = MagicMock()
        calendar.create_event = AsyncMock()
        session = Session(session_id="b" * 32, memory=BOOKED.replace("2026-11-20T14:00:00-07:00", "next Friday"))
        dispatcher = HandoffDispatcher(relay, calendar=calendar, error_monitor=monitor, create_calendar_event=True)
        assert await dispatcher.maybe_dispatch(session, True) is not None
        calendar.create_event.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_calendar_failure_keeps_handoff(self, relay, monitor, session):
        calendar = MagicMock()
        calendar.create_event = AsyncMock(side_effect=IntegrationError("down", service="calendar"))
        dispatcher = HandoffDispatcher(relay, calendar=calendar, error_monitor=monitor, create_calendar_event=True)
        assert await dispatcher.maybe_dispatch(session, True) is not None
        assert session.handoff_count == 1
        assert "calendar" in monitor.get_stats()

    @pytest.mark.asyncio
    async def test_calendar_non_json_reply_keeps_handoff(self, relay, monitor, session):
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>")))
        calendar = CalendarClient(_StaticToken(), "cal", client=http)
        dispatcher = HandoffDispatcher(relay, calendar=calendar, error_monitor=monitor, create_calendar_event=True)

        summary = await dispatcher.maybe_dispatch(session, True)

        assert summary is not None
        assert session.handoff_count == 1
        relay.send.assert_awaited_once()
        assert "calendar" in monitor.get_stats()

    @pytest.mark.asyncio
    async def test_disabled_by_default(self, relay, monitor, session):
        calendar = MagicMock()
        calendar.create_event = AsyncMock()
        dispatcher = HandoffDispatcher(relay, calendar=calendar, error_monitor=monitor, create_calendar_event=False)
        await dispatcher.maybe_dispatch(session, True)
        calendar.create_event.assert_not_awaited()
