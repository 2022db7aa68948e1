"""Tests for aitana.llm.circuit_breaker and the provider registry."""

import time

from aitana.llm.circuit_breaker import FAILURE_THRESHOLD, CircuitBreakerState
from aitana.llm.providers import LLM_PROVIDERS, get_all_providers, get_provider


class TestCircuitBreakerState:

    def test_starts_closed(self):
        cb = CircuitBreakerState("test")
        assert cb.state == "closed"
        assert cb.can_proceed() is True
        assert cb.get_remaining_cooldown() == 0

    def test_opens_at_threshold(self):
        cb = CircuitBreakerState("test")
        for _ in range(FAILURE_THRESHOLD - 1):
            cb.record_failure("server_error")
        assert cb.state == "closed"
        cb.record_failure("server_error")
        assert cb.state == "open"
        assert cb.can_proceed() is False
        assert cb.get_remaining_cooldown() > 0

    def test_half_open_after_cooldown(self):
        cb = CircuitBreakerState("test")
        for _ in range(FAILURE_THRESHOLD):
            cb.record_failure("timeout")
        cb._open_until = time.time() - 1
        assert cb.can_proceed() is True
        assert cb.state == "half-open"

    def test_half_open_failure_reopens(self):
        cb = CircuitBreakerState("test")
        for _ in range(FAILURE_THRESHOLD):
            cb.record_failure("timeout")
        cb._open_until = time.time() - 1
        cb.can_proceed()
        cb.record_failure("timeout")
        assert cb.state == "open"

    def test_success_closes(self):
        cb = CircuitBreakerState("test")
        for _ in range(FAILURE_THRESHOLD):
            cb.record_failure("unknown")
        cb._open_until = time.time() - 1
        cb.can_proceed()
        cb.record_success()
        assert cb.state == "closed"

    def test_reset(self):
        cb = CircuitBreakerState("test")
        for _ in range(FAILURE_THRESHOLD):
            cb.record_failure("unknown")
        cb.reset()
        assert cb.can_proceed() is True


class TestProviders:

    def test_registry(self):
        assert set(LLM_PROVIDERS) == {"openai", "openai_assistant", "anthropic", "google"}
        assert get_provider("openai_assistant").stateful is True

    def test_fallback(self):
        assert get_provider("mystery") is LLM_PROVIDERS["openai"]

    def test_availability_follows_env(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        monkeypatch.delenv("OPENAI_ASSISTANT_ID", raising=False)
        providers = {p["id"]: p for p in get_all_providers()}
        assert providers["anthropic"]["available"] is True
        assert providers["openai_assistant"]["available"] is False
