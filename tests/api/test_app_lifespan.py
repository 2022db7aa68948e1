"""Tests for the application lifespan wiring in aitana.app."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from aitana.api.deps import get_state


class TestLifespan:

    def test_startup_builds_services(self, fake_gateway):
        from aitana.app import app

        fake_gateway.replies = ["Hello from the shop!"]
        with patch("aitana.app.get_gateway", return_value=fake_gateway), \
                patch("aitana.app.TELEGRAM_BOT_TOKEN", None), \
                patch("aitana.app.GOOGLE_SHEETS_KEY", None), \
                patch("aitana.app.GOOGLE_CALENDAR_KEY", None):
            with TestClient(app) as client:
                state = get_state()
                assert state.chat_handler is not None
                assert state.relay is None

                resp = client.post("/chat", json={"message": "hi"})
                assert resp.json() == {"response": "Hello from the shop!"}

                health = client.get("/health").json()
                assert health["components"]["gateway"]["state"] in ("healthy", "degraded")
                assert health["components"]["relay"]["state"] == "degraded"
                assert health["status"] == "degraded"

        assert get_state().chat_handler is None

    def test_gateway_init_failure_leaves_chat_unavailable(self):
        from aitana.app import app

        with patch("aitana.app.get_gateway", side_effect=ValueError("OPENAI_ASSISTANT_ID is required")), \
                patch("aitana.app.TELEGRAM_BOT_TOKEN", None):
            with TestClient(app, raise_server_exceptions=False) as client:
                assert client.post("/chat", json={"message": "hi"}).status_code == 503
                assert client.get("/health").json()["components"]["gateway"]["state"] == "unhealthy"
