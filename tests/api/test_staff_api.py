"""Tests for notification, roster, appointment, status and session admin endpoints."""

from unittest.mock import patch

import pytest

from aitana.core.errors import IntegrationError, RelayError, ValidationError


# ---------------------------------------------------------------------------
# POST /send-notification
# ---------------------------------------------------------------------------


class TestNotify:

    def test_relays_text(self, client, fake_relay):
        resp = client.post("/send-notification", json={"text": "Walk-in at 3pm"})
        assert resp.status_code == 200
        assert resp.json() == {"status": "sent"}
        assert fake_relay.sent == ["Walk-in at 3pm"]

    def test_empty_text_is_400(self, client, fake_relay):
        resp = client.post("/send-notification", json={"text": " "})
        assert resp.status_code == 400
        assert fake_relay.sent == []

    def test_relay_failure_is_502(self, client, fake_relay):
        fake_relay.error = RelayError("Telegram send failed: Forbidden")
        resp = client.post("/send-notification", json={"text": "hello"})
        assert resp.status_code == 502
        assert resp.json()["error"] == "Telegram send failed: Forbidden"

    def test_relay_not_configured(self, bare_client):
        assert bare_client.post("/send-notification", json={"text": "hi"}).status_code == 502

    @patch("aitana.api.deps.ADMIN_API_KEY", "staff-key")
    def test_key_required_when_configured(self, client):
        assert client.post("/send-notification", json={"text": "hi"}).status_code == 401
        resp = client.post(
            "/send-notification",
            json={"text": "hi"},
            headers={"Authorization": "Bearer staff-key"},
        )
        assert resp.status_code == 200


# ---------------------------------------------------------------------------
# GET /roster, /appointments
# ---------------------------------------------------------------------------


class TestRoster:

    def test_lists_artists(self, client):
        resp = client.get("/roster")
        assert resp.status_code == 200
        artists = resp.json()["artists"]
        assert artists[0]["name"] == "Marco"
        assert set(artists[0]) == {"name", "specialty", "location", "schedule", "notes"}

    def test_sheets_failure_is_502(self, client, sheets):
        sheets.get_roster.side_effect = IntegrationError("Sheets read failed (403)", service="sheets")
        assert client.get("/roster").status_code == 502

    def test_unexpected_failure_is_500_json(self, client, sheets):
        sheets.get_roster.side_effect = RuntimeError("kaboom")
        resp = client.get("/roster")
        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "Internal Server Error"
        assert body["type"] == "RuntimeError"
        assert body["path"] == "/roster"


class TestAppointments:

    def test_create(self, client, calendar):
        resp = client.post("/appointments", json={
            "summary": "Koi",
            "description": "Ana",
            "start_time": "2026-11-20T14:00:00-07:00",
            "end_time": "2026-11-20T16:00:00-07:00",
        })
        assert resp.status_code == 200
        assert resp.json()["event"]["id"] == "evt1"
        assert calendar.create_event.await_args.kwargs["summary"] == "Koi"

    def test_create_with_bad_times(self, client, calendar):
        calendar.create_event.side_effect = ValidationError("end_time must be after start_time", field="end_time")
        resp = client.post("/appointments", json={
            "summary": "Koi", "start_time": "b", "end_time": "a",
        })
        assert resp.status_code == 400

    def test_missing_fields_is_400(self, client):
        assert client.post("/appointments", json={"summary": "Koi"}).status_code == 400

    def test_list(self, client):
        resp = client.get("/appointments")
        assert resp.json() == {"events": [{"id": "evt1"}]}

    def test_calendar_not_configured(self, bare_client):
        assert bare_client.get("/appointments").status_code == 502


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


class TestStatus:

    def test_root_redirects(self, client):
        resp = client.get("/", follow_redirects=False)
        assert resp.status_code in (302, 307)
        assert resp.headers["location"] == "/welcome.html"

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["components"]["relay"]["state"] == "healthy"
        assert {p["id"] for p in body["providers"]} >= {"openai", "anthropic"}

    def test_metrics(self, client):
        client.post("/chat", json={"message": "hello"})
        resp = client.get("/metrics")
        assert resp.status_code == 200
        text = resp.text
        assert "chat_turns_total 1" in text
        assert "sessions_active 1" in text
        assert "http_requests_total{" in text


# ---------------------------------------------------------------------------
# Session admin
# ---------------------------------------------------------------------------


class TestSessionAdmin:

    def test_disabled_without_key(self, client):
        assert client.get("/sessions").status_code == 403

    @patch("aitana.api.deps.ADMIN_API_KEY", "admin-key")
    def test_wrong_key(self, client):
        assert client.get("/sessions", headers={"X-API-Key": "nope"}).status_code == 401

    @patch("aitana.api.deps.ADMIN_API_KEY", "admin-key")
    def test_list_inspect_evict(self, client, app_state):
        client.post("/chat", json={"message": "hello"})
        token = app_state.store.tokens()[0]
        headers = {"X-API-Key": "admin-key"}

        listing = client.get("/sessions", headers=headers).json()
        assert listing == {"count": 1, "sessions": [token]}

        detail = client.get(f"/sessions/{token}", headers=headers).json()
        assert detail["turns"] == 2

        evicted = client.delete(f"/sessions/{token}", headers=headers).json()
        assert evicted["evicted"] is True
        assert client.get(f"/sessions/{token}", headers=headers).status_code == 404
