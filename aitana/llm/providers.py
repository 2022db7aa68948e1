"""Completion provider registry.

``LLM_PROVIDER`` picks one entry; each entry names the gateway kind, the
default model and the env var holding its credential.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, List

from aitana.config import (
    ANTHROPIC_CHAT_MODEL,
    GEMINI_CHAT_MODEL,
    OPENAI_CHAT_MODEL,
)


@dataclass
class LLMProvider:

    name: str
    model: str
    provider: str
    api_key_env: str
    stateful: bool = False
    extra_env: tuple[str, ...] = ()

    @property
    def available(self) -> bool:
        return all(os.getenv(env) for env in (self.api_key_env, *self.extra_env))


LLM_PROVIDERS: Dict[str, LLMProvider] = {
    "openai": LLMProvider(
        name="OpenAI Chat Completions",
        model=OPENAI_CHAT_MODEL,
        provider="openai",
        api_key_env="OPENAI_API_KEY",
    ),
    "openai_assistant": LLMProvider(
        name="OpenAI Assistant thread",
        model=OPENAI_CHAT_MODEL,
        provider="openai_assistant",
        api_key_env="OPENAI_API_KEY",
        stateful=True,
        extra_env=("OPENAI_ASSISTANT_ID",),
    ),
    "anthropic": LLMProvider(
        name="Anthropic Claude",
        model=ANTHROPIC_CHAT_MODEL,
        provider="anthropic",
        api_key_env="ANTHROPIC_API_KEY",
    ),
    "google": LLMProvider(
        name="Google Gemini",
        model=GEMINI_CHAT_MODEL,
        provider="google",
        api_key_env="GEMINI_API_KEY",
    ),
}

DEFAULT_PROVIDER = "openai"


def get_provider(name: str) -> LLMProvider:
    """Unknown names fall back to ``DEFAULT_PROVIDER``."""
    return LLM_PROVIDERS.get(name, LLM_PROVIDERS[DEFAULT_PROVIDER])


def get_all_providers() -> List[Dict[str, Any]]:
    return [
        {
            "id": key,
            "name": p.name,
            "model": p.model,
            "stateful": p.stateful,
            "available": p.available,
        }
        for key, p in LLM_PROVIDERS.items()
    ]


__all__ = [
    "LLMProvider",
    "LLM_PROVIDERS",
    "DEFAULT_PROVIDER",
    "get_provider",
    "get_all_providers",
]
