"""Anthropic Claude completion gateway."""

from typing import Any, Dict, List

import anthropic

from aitana.config import ANTHROPIC_API_KEY, ANTHROPIC_CHAT_MODEL, LLM_MAX_TOKENS, LLM_TEMPERATURE
from aitana.core.booking.prompt import MEMORY_HEADER
from aitana.core.errors import ProviderError
from aitana.core.logging import get_logger
from aitana.core.utils.lazy import Lazy
from aitana.core.utils.retry import RetryConfig
from aitana.core.utils.timeouts import TIMEOUTS

from .base import Message, StatelessGateway, split_system

_log = get_logger("llm.anthropic_client")

_anthropic_client: Lazy[anthropic.AsyncAnthropic] = Lazy(
    lambda: anthropic.AsyncAnthropic(api_key=ANTHROPIC_API_KEY, timeout=TIMEOUTS.API_CALL, max_retries=0)
)


def _is_retryable_anthropic(error: Exception) -> bool:
    if isinstance(error, anthropic.RateLimitError):
        return True
    if isinstance(error, anthropic.APIStatusError):
        return getattr(error, "status_code", 0) in (429, 500, 503, 529)
    if isinstance(error, (anthropic.APITimeoutError, anthropic.APIConnectionError)):
        return True
    return False


def system_blocks(system_prompt: str) -> list[Dict[str, Any]]:
    """Cache the instruction template; the memory tail changes every turn."""
    cut = system_prompt.rfind(MEMORY_HEADER)
    static, memory = (system_prompt, "") if cut == -1 else (system_prompt[:cut], system_prompt[cut:])
    blocks: list[Dict[str, Any]] = []
    if static.strip():
        blocks.append({"type": "text", "text": static, "cache_control": {"type": "ephemeral"}})
    if memory:
        blocks.append({"type": "text", "text": memory})
    return blocks


class AnthropicGateway(StatelessGateway):

    provider = "anthropic"

    def __init__(self, model: str | None = None, client: anthropic.AsyncAnthropic | None = None):
        self.model_name = model or ANTHROPIC_CHAT_MODEL
        self._client = client or _anthropic_client.get()
        _log.info("anthropic gateway ready", model=self.model_name)

    def _retry_config(self) -> RetryConfig:
        config = super()._retry_config()
        config.retryable_check = _is_retryable_anthropic
        return config

    async def complete(self, messages: List[Message]) -> str:
        system_prompt, turns = split_system(messages)
        # Messages API requires the first turn to come from the user.
        while turns and turns[0]["role"] == "assistant":
            turns.pop(0)

        kwargs: Dict[str, Any] = {
            "model": self.model_name,
            "max_tokens": LLM_MAX_TOKENS,
            "messages": turns,
            "temperature": LLM_TEMPERATURE,
        }
        if system_prompt:
            kwargs["system"] = system_blocks(system_prompt)

        async def _create() -> str:
            response = await self._client.messages.create(**kwargs)
            text = "".join(block.text for block in response.content if block.type == "text")
            if not text:
                raise ProviderError("Anthropic returned no text", provider=self.provider)
            return text

        return await self._call(_create)


__all__ = ["AnthropicGateway", "system_blocks"]
