"""Root conftest: resets all global state after every test."""

import pytest

from aitana.api.deps import get_state
from aitana.channels.protocol import Platform, RelayHealth
from aitana.core.logging.error_monitor import ErrorMonitor, error_monitor
from aitana.core.utils.lazy import Lazy
from aitana.llm.anthropic_client import AnthropicGateway
from aitana.llm.base import StatefulGateway, StatelessGateway
from aitana.llm.gemini_client import GeminiGateway
from aitana.llm.openai_client import OpenAIAssistantGateway, OpenAIChatGateway

_GATEWAY_CLASSES = (OpenAIChatGateway, OpenAIAssistantGateway, AnthropicGateway, GeminiGateway)


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Reset Lazy singletons, AppState, breakers and the error monitor after each test."""
    yield
    Lazy.reset_all()
    get_state().reset()
    error_monitor.reset()
    for cls in _GATEWAY_CLASSES:
        cls._circuit_breaker.reset()


@pytest.fixture
def no_backoff(monkeypatch):
    """Make retry_async sleep instantly."""

    async def _instant(_delay):
        return None

    monkeypatch.setattr("aitana.core.utils.retry.asyncio.sleep", _instant)


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


class FakeGateway(StatelessGateway):
    """Returns queued replies and records every message list it was sent."""

    provider = "fake"

    def __init__(self, replies=None):
        self.model_name = "fake-model"
        self.replies = list(replies or [])
        self.calls = []
        self.error = None

    async def complete(self, messages):
        self.calls.append([dict(m) for m in messages])
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if self.replies else "OK"


class FakeThreadGateway(StatefulGateway):
    """Thread-backed fake: hands out ``thread-1`` and records each run."""

    provider = "fake_thread"

    def __init__(self, replies=None):
        self.model_name = "fake-assistant"
        self.replies = list(replies or [])
        self.calls = []

    async def complete_in_thread(self, thread_handle, message, instructions):
        self.calls.append((thread_handle, message, instructions))
        handle = thread_handle or "thread-1"
        return handle, self.replies.pop(0) if self.replies else "OK"


class FakeRelay:

    platform = Platform.TELEGRAM

    def __init__(self):
        self.sent = []
        self.error = None

    async def send(self, text):
        if self.error is not None:
            raise self.error
        self.sent.append(text)

    async def health_check(self):
        return RelayHealth(healthy=True, platform=Platform.TELEGRAM)

    async def close(self):
        return None


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def fake_thread_gateway():
    return FakeThreadGateway()


@pytest.fixture
def fake_relay():
    return FakeRelay()


@pytest.fixture
def quiet_monitor():
    return ErrorMonitor(webhook_url="")
