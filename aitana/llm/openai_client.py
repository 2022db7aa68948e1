"""OpenAI completion gateways.

This module provides:
- OpenAIChatGateway: Chat Completions, full message list per call
- OpenAIAssistantGateway: Assistants thread + run with a bounded poll loop
"""

import asyncio
from typing import Any, List

import openai
from openai import AsyncOpenAI

from aitana.config import (
    ASSISTANT_MAX_POLLS,
    ASSISTANT_POLL_INTERVAL,
    LLM_MAX_TOKENS,
    LLM_TEMPERATURE,
    OPENAI_API_KEY,
    OPENAI_ASSISTANT_ID,
    OPENAI_CHAT_MODEL,
)
from aitana.core.errors import GatewayTimeoutError, ProviderError
from aitana.core.logging import get_logger
from aitana.core.logging.error_monitor import error_monitor
from aitana.core.utils.lazy import Lazy
from aitana.core.utils.timeouts import TIMEOUTS

from .base import Message, StatefulGateway, StatelessGateway

_log = get_logger("llm.openai_client")

# SDK retries are disabled; retry_async owns backoff.
_openai_client: Lazy[AsyncOpenAI] = Lazy(
    lambda: AsyncOpenAI(api_key=OPENAI_API_KEY, timeout=TIMEOUTS.API_CALL, max_retries=0)
)


def get_openai_client() -> AsyncOpenAI:
    return _openai_client.get()


RUN_PENDING_STATUSES = frozenset({"queued", "in_progress", "cancelling"})
RUN_SUCCESS_STATUS = "completed"


class OpenAIChatGateway(StatelessGateway):

    provider = "openai"

    def __init__(self, model: str | None = None, client: AsyncOpenAI | None = None):
        self.model_name = model or OPENAI_CHAT_MODEL
        self._client = client or get_openai_client()
        _log.info("openai chat gateway ready", model=self.model_name)

    async def complete(self, messages: List[Message]) -> str:

        async def _create() -> str:
            completion = await self._client.chat.completions.create(
                model=self.model_name,
                messages=messages,
                temperature=LLM_TEMPERATURE,
                max_tokens=LLM_MAX_TOKENS,
            )
            if not completion.choices:
                raise ProviderError("OpenAI returned no choices", provider=self.provider)
            return completion.choices[0].message.content or ""

        return await self._call(_create)


class OpenAIAssistantGateway(StatefulGateway):
    """Runs a configured Assistant on a per-session thread.

    The thread handle lives on the session. Only the new user message is sent;
    the run's ``instructions`` carry the current system prompt and memory.
    """

    provider = "openai_assistant"

    def __init__(
        self,
        assistant_id: str | None = None,
        client: AsyncOpenAI | None = None,
        poll_interval: float = ASSISTANT_POLL_INTERVAL,
        max_polls: int = ASSISTANT_MAX_POLLS,
    ):
        self.assistant_id = assistant_id or OPENAI_ASSISTANT_ID
        if not self.assistant_id:
            raise ValueError("OPENAI_ASSISTANT_ID is required for the assistant gateway")
        self.model_name = self.assistant_id
        self._client = client or get_openai_client()
        self.poll_interval = poll_interval
        self.max_polls = max_polls

    async def complete_in_thread(
        self,
        thread_handle: str | None,
        message: str,
        instructions: str,
    ) -> tuple[str, str]:
        threads = self._client.beta.threads

        if thread_handle is None:
            thread = await self._call(lambda: threads.create())
            thread_handle = thread.id
            _log.info("assistant thread opened", thread=thread_handle)

        # a repeated create would post the message twice or start a second run
        await self._call(
            lambda: threads.messages.create(thread_id=thread_handle, role="user", content=message),
            repeatable=False,
        )
        run = await self._call(
            lambda: threads.runs.create(
                thread_id=thread_handle,
                assistant_id=self.assistant_id,
                instructions=instructions,
            ),
            repeatable=False,
        )

        run = await self._wait_for_run(thread_handle, run)
        reply = await self._call(lambda: self._collect_reply(thread_handle, run.id))
        return thread_handle, reply

    async def _wait_for_run(self, thread_handle: str, run: Any) -> Any:
        """Poll until the run leaves the pending statuses or the bound is hit."""
        cls = type(self)
        for _ in range(self.max_polls):
            if run.status not in RUN_PENDING_STATUSES:
                break
            await asyncio.sleep(self.poll_interval)
            try:
                run = await self._client.beta.threads.runs.retrieve(run.id, thread_id=thread_handle)
            except openai.OpenAIError as e:
                cls._circuit_breaker.record_failure("unknown")
                error_monitor.record("gateway", str(e)[:200])
                raise ProviderError(f"assistant run poll failed: {e}", provider=self.provider) from e
        else:
            if run.status in RUN_PENDING_STATUSES:
                timeout_ms = int(self.max_polls * self.poll_interval * 1000)
                error_monitor.record("timeout", f"assistant run {run.id} still {run.status}")
                _log.error("assistant run timed out", thread=thread_handle, run=run.id, polls=self.max_polls)
                raise GatewayTimeoutError(
                    f"Assistant run did not finish after {self.max_polls} polls",
                    timeout_ms=timeout_ms,
                )

        if run.status != RUN_SUCCESS_STATUS:
            cls._circuit_breaker.record_failure("server_error")
            error_monitor.record("gateway", f"assistant run {run.status}")
            _log.error("assistant run failed", thread=thread_handle, run=run.id, status=run.status)
            raise ProviderError(f"Assistant run ended with status '{run.status}'", provider=self.provider)
        return run

    async def _collect_reply(self, thread_handle: str, run_id: str) -> str:
        page = await self._client.beta.threads.messages.list(thread_id=thread_handle, order="desc", limit=20)
        parts: list[str] = []
        for msg in page.data:
            if msg.role != "assistant" or getattr(msg, "run_id", None) != run_id:
                continue
            texts = [block.text.value for block in msg.content if block.type == "text"]
            parts.insert(0, "\n".join(texts))
        if not parts:
            raise ProviderError("Assistant run produced no reply", provider=self.provider)
        return "\n\n".join(parts)


__all__ = ["OpenAIChatGateway", "OpenAIAssistantGateway", "get_openai_client"]
