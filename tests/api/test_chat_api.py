"""Tests for POST /chat."""

import pytest

from aitana.core.errors import ProviderError
from aitana.core.session.models import is_session_token

FINAL = (
    "Thanks Ana, the team will be in touch!\n\n"
    '#DATA: {"name":"Ana","email":"ana@example.com","phone":"555","location":"Tempe",'
    '"artist":"Marco","priceRange":"300","description":"koi","date":"Friday",'
    '"alreadyGreeted":true} #ENDDATA #FORWARD_TELEGRAM#'
)


class TestChatEndpoint:

    def test_first_message_mints_cookie(self, client, fake_gateway):
        fake_gateway.replies = ['Hi! What\'s your name?\n\n#DATA: {"alreadyGreeted": true} #ENDDATA']
        resp = client.post("/chat", json={"message": "hello"})

        assert resp.status_code == 200
        assert resp.json() == {"response": "Hi! What's your name?"}
        token = resp.cookies.get("sessionId")
        assert is_session_token(token)
        assert "httponly" in resp.headers["set-cookie"].lower()

    def test_cookie_is_reused(self, client, app_state):
        first = client.post("/chat", json={"message": "hello"})
        token = first.cookies.get("sessionId")

        second = client.post("/chat", json={"message": "again"})
        assert "set-cookie" not in second.headers
        assert len(app_state.store) == 1
        assert len(app_state.store.get(token).conversation) == 4

    def test_malformed_cookie_is_replaced(self, client):
        client.cookies.set("sessionId", "../../etc")
        resp = client.post("/chat", json={"message": "hi"})
        assert is_session_token(resp.cookies.get("sessionId"))

    def test_unknown_token_starts_fresh_session(self, client, app_state):
        token = "e" * 32
        client.cookies.set("sessionId", token)
        resp = client.post("/chat", json={"message": "hi"})
        assert resp.status_code == 200
        assert app_state.store.get(token) is not None

    @pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": "   "}, {"message": 5}])
    def test_empty_message_is_400(self, client, body, app_state):
        resp = client.post("/chat", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"] == "No message provided"
        assert len(app_state.store) == 0

    def test_invalid_json_is_400(self, client):
        resp = client.post("/chat", content="not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_gateway_failure_is_502(self, client, fake_gateway):
        fake_gateway.error = ProviderError("openai request failed: 500", provider="openai")
        resp = client.post("/chat", json={"message": "hello"})
        assert resp.status_code == 502
        body = resp.json()
        assert body["error"] == "openai request failed: 500"
        assert body["code"] == "PROVIDER"

    def test_handoff_relays_summary(self, client, fake_gateway, fake_relay):
        fake_gateway.replies = [FINAL]
        resp = client.post("/chat", json={"message": "Friday works"})
        assert resp.json()["response"] == "Thanks Ana, the team will be in touch!"
        assert len(fake_relay.sent) == 1
        assert fake_relay.sent[0].startswith("Booking Summary:")

    def test_not_ready_is_503(self, bare_client):
        resp = bare_client.post("/chat", json={"message": "hello"})
        assert resp.status_code == 503

    def test_request_id_header(self, client):
        resp = client.post("/chat", json={"message": "hi"}, headers={"X-Request-ID": "abc123"})
        assert resp.headers["X-Request-ID"] == "abc123"
