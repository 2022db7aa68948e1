"""Google Gemini completion gateway."""

from typing import List

from google import genai
from google.genai import types

from aitana.config import GEMINI_API_KEY, GEMINI_CHAT_MODEL, LLM_MAX_TOKENS, LLM_TEMPERATURE
from aitana.core.logging import get_logger
from aitana.core.utils.lazy import Lazy

from .base import Message, StatelessGateway, split_system

_log = get_logger("llm.gemini_client")

_gemini_client: Lazy[genai.Client] = Lazy(lambda: genai.Client(api_key=GEMINI_API_KEY))


def to_contents(messages: List[Message]) -> List[types.Content]:
    """Gemini calls the assistant role ``model``."""
    return [
        types.Content(
            role="model" if m["role"] == "assistant" else "user",
            parts=[types.Part.from_text(text=m["content"])],
        )
        for m in messages
    ]


class GeminiGateway(StatelessGateway):

    provider = "google"

    def __init__(self, model: str | None = None, client: genai.Client | None = None):
        self.model_name = model or GEMINI_CHAT_MODEL
        self._client = client or _gemini_client.get()
        _log.info("gemini gateway ready", model=self.model_name)

    async def complete(self, messages: List[Message]) -> str:
        system_prompt, turns = split_system(messages)
        config = types.GenerateContentConfig(
            system_instruction=system_prompt or None,
            temperature=LLM_TEMPERATURE,
            max_output_tokens=LLM_MAX_TOKENS,
        )

        async def _generate() -> str:
            response = await self._client.aio.models.generate_content(
                model=self.model_name,
                contents=to_contents(turns),  # type: ignore[arg-type]
                config=config,
            )
            return response.text or ""

        return await self._call(_generate)


__all__ = ["GeminiGateway", "to_contents"]
