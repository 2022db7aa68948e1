"""Completion gateway interfaces and factory.

This module provides:
- StatelessGateway: the full message list goes out on every call
- StatefulGateway: a provider-held thread keeps history, only the new user
  message goes out
- get_gateway: factory keyed by ``LLM_PROVIDER``
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, ClassVar, Dict, List, TypeVar

from aitana.config import GATEWAY_MAX_RETRIES
from aitana.core.errors import AitanaError, ProviderError
from aitana.core.logging import get_logger, log_gateway
from aitana.core.logging.error_monitor import error_monitor
from aitana.core.utils.retry import RetryConfig, classify_error, retry_async

from .circuit_breaker import CircuitBreakerState
from .providers import get_provider

_log = get_logger("llm.base")

T = TypeVar("T")

Message = Dict[str, str]


def split_system(messages: List[Message]) -> tuple[str, List[Message]]:
    """Separate system content from the turns for APIs that take it apart."""
    system_parts = [m["content"] for m in messages if m["role"] == "system"]
    turns = [{"role": m["role"], "content": m["content"]} for m in messages if m["role"] != "system"]
    return "\n\n".join(system_parts), turns


class _ResilientGateway:
    """Circuit breaker + retry + error monitor around a provider call."""

    provider: ClassVar[str] = ""
    _circuit_breaker: ClassVar[CircuitBreakerState]

    model_name: str = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.provider:
            cls._circuit_breaker = CircuitBreakerState(cls.provider)

    @classmethod
    def is_circuit_open(cls) -> bool:
        return not cls._circuit_breaker.can_proceed()

    def _retry_config(self) -> RetryConfig:
        return RetryConfig(max_retries=max(1, GATEWAY_MAX_RETRIES), base_delay=1.0, max_delay=20.0)

    async def _call(self, func: Callable[[], Awaitable[T]], *, repeatable: bool = True) -> T:
        """Run one provider call behind the breaker.

        Calls with a server-side effect that must not happen twice pass
        ``repeatable=False`` and get a single attempt.
        """
        cls = type(self)
        if cls.is_circuit_open():
            remaining = cls._circuit_breaker.get_remaining_cooldown()
            _log.warning("circuit breaker open", provider=cls.provider, remaining_s=remaining)
            raise ProviderError(
                f"Circuit breaker open ({remaining}s remaining). {cls.provider} temporarily unavailable.",
                provider=cls.provider,
            )

        def _on_retry(attempt: int, error: Exception, delay: float) -> None:
            error_monitor.record(classify_error(error), str(error)[:200])

        config = self._retry_config() if repeatable else RetryConfig(max_retries=1)
        t0 = time.monotonic()
        try:
            result = await retry_async(func, config=config, on_retry=_on_retry)
        except AitanaError as e:
            cls._circuit_breaker.record_failure(classify_error(e))
            error_monitor.record("gateway", str(e)[:200])
            raise
        except Exception as e:
            cls._circuit_breaker.record_failure(classify_error(e))
            error_monitor.record("gateway", str(e)[:200])
            _log.error("gateway call failed", provider=cls.provider, model=self.model_name, error=str(e)[:200])
            raise ProviderError(f"{cls.provider} request failed: {e}", provider=cls.provider) from e

        elapsed_ms = (time.monotonic() - t0) * 1000
        cls._circuit_breaker.record_success()
        log_gateway(cls.provider, elapsed_ms)
        _log.debug("gateway call done", provider=cls.provider, model=self.model_name, latency=round(elapsed_ms))
        return result


class StatelessGateway(_ResilientGateway, ABC):

    stateful: ClassVar[bool] = False

    @abstractmethod
    async def complete(self, messages: List[Message]) -> str:
        """Return the reply text for an ordered message list.

        Args:
            messages: System instruction first, then conversation turns.

        Raises:
            ProviderError: transport, auth, rate limit or empty response.
        """


class StatefulGateway(_ResilientGateway, ABC):

    stateful: ClassVar[bool] = True

    @abstractmethod
    async def complete_in_thread(
        self,
        thread_handle: str | None,
        message: str,
        instructions: str,
    ) -> tuple[str, str]:
        """Append ``message`` to a provider thread and run it to completion.

        Args:
            thread_handle: Existing thread id, or None to open one.
            message: The new user message.
            instructions: System instruction for this run.

        Returns:
            ``(thread_handle, reply_text)``

        Raises:
            ProviderError: the run ended in a non-success status.
            GatewayTimeoutError: the run did not finish within the poll bound.
        """


CompletionGateway = StatelessGateway | StatefulGateway


def get_gateway(provider_name: str, model: str | None = None) -> CompletionGateway:
    """Build the gateway for ``provider_name``.

    Raises:
        ValueError: unknown provider kind
    """
    from .anthropic_client import AnthropicGateway
    from .gemini_client import GeminiGateway
    from .openai_client import OpenAIAssistantGateway, OpenAIChatGateway

    provider = get_provider(provider_name)
    model_name = model or provider.model

    if provider.provider == "openai":
        return OpenAIChatGateway(model=model_name)
    elif provider.provider == "openai_assistant":
        return OpenAIAssistantGateway()
    elif provider.provider == "anthropic":
        return AnthropicGateway(model=model_name)
    elif provider.provider == "google":
        return GeminiGateway(model=model_name)
    raise ValueError(f"Unknown provider: {provider_name}")


__all__ = [
    "Message",
    "split_system",
    "StatelessGateway",
    "StatefulGateway",
    "CompletionGateway",
    "get_gateway",
]
