"""Tests for aitana.core.errors hierarchy."""

import pytest

from aitana.core.errors import (
    AitanaError,
    AuthError,
    GatewayTimeoutError,
    IntegrationError,
    ProviderError,
    RelayError,
    TransientError,
    ValidationError,
)


class TestHierarchy:

    def test_code_defaults(self):
        assert TransientError("x").code == "TRANSIENT"
        assert ValidationError("x", code="EMPTY").code == "EMPTY"

    @pytest.mark.parametrize(
        "error, status, retryable",
        [
            (TransientError("x"), 503, True),
            (ValidationError("x"), 400, False),
            (AuthError("x"), 401, False),
            (ProviderError("x", provider="openai"), 502, True),
            (GatewayTimeoutError("x", timeout_ms=1000), 504, True),
            (RelayError("x"), 502, True),
            (IntegrationError("x", service="sheets"), 502, False),
        ],
    )
    def test_status_and_retryability(self, error, status, retryable):
        assert isinstance(error, AitanaError)
        assert error.http_status == status
        assert error.is_retryable is retryable

    def test_auth_error_custom_status(self):
        assert AuthError("Admin API disabled", http_status=403).http_status == 403

    def test_extra_attributes(self):
        assert ValidationError("x", field="message").field == "message"
        assert ProviderError("x", provider="anthropic").provider == "anthropic"
        assert GatewayTimeoutError("x", timeout_ms=60000).timeout_ms == 60000
        assert RelayError("x").channel == "telegram"
        assert IntegrationError("x", service="calendar").service == "calendar"

    def test_to_dict(self):
        data = ProviderError("boom", provider="openai", request_id="req1").to_dict()
        assert data["code"] == "PROVIDER"
        assert data["message"] == "boom"
        assert data["http_status"] == 502
        assert data["is_retryable"] is True
        assert data["request_id"] == "req1"

    def test_str_is_message(self):
        assert str(RelayError("Telegram send failed")) == "Telegram send failed"
