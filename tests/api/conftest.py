"""Shared fixtures for API layer tests.

The app is driven without its lifespan: ``init_state`` wires a real session
store and chat handler around fake collaborators, and a Starlette TestClient
talks to the module-level app.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from aitana.api.deps import init_state
from aitana.core.booking.handoff import HandoffDispatcher
from aitana.core.chat_handler import ChatHandler
from aitana.core.health.health_check import HealthChecker, configured
from aitana.core.session.store import InMemorySessionStore
from aitana.core.telemetry.metrics import build_registry
from aitana.integrations.google import Artist


@pytest.fixture
def sheets():
    s = MagicMock()
    s.get_roster = AsyncMock(return_value=[Artist(name="Marco", specialty="Japanese")])
    return s


@pytest.fixture
def calendar():
    c = MagicMock()
    c.create_event = AsyncMock(return_value={"id": "evt1", "summary": "Koi"})
    c.list_upcoming = AsyncMock(return_value=[{"id": "evt1"}])
    return c


@pytest.fixture
def app_state(fake_gateway, fake_relay, quiet_monitor, sheets, calendar):
    store = InMemorySessionStore()
    metrics = build_registry()
    handler = ChatHandler(
        store=store,
        gateway=fake_gateway,
        dispatcher=HandoffDispatcher(fake_relay, error_monitor=quiet_monitor, metrics=metrics),
        instructions="You are Aitana.",
        window_limit=4,
        metrics=metrics,
    )
    checker = HealthChecker()
    checker.register("relay", configured("relay", fake_relay))
    init_state(
        session_store=store,
        chat_handler=handler,
        relay=fake_relay,
        sheets=sheets,
        calendar=calendar,
        metrics=metrics,
        health_checker=checker,
    )
    return handler


@pytest.fixture
def client(app_state):
    from aitana.app import app

    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def bare_client():
    """Client with no services initialized."""
    from aitana.app import app

    return TestClient(app, raise_server_exceptions=False)
