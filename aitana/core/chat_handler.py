"""One chat turn, from inbound message to visitor-facing reply."""

import uuid
from dataclasses import dataclass

from aitana.config import WINDOW_LIMIT
from aitana.core.booking.handoff import HandoffDispatcher
from aitana.core.booking.prompt import assemble, build_system_prompt
from aitana.core.booking.reply_parser import parse_reply
from aitana.core.errors import AitanaError, ValidationError
from aitana.core.logging import get_logger, get_request_id, log_parse, track_request
from aitana.core.session.state_machine import RequestState, RequestStateMachine
from aitana.core.session.store import SessionStore
from aitana.core.session.updater import apply, pending_conversation
from aitana.core.telemetry.metrics import MetricsRegistry
from aitana.llm.base import CompletionGateway, StatefulGateway

_log = get_logger("core.chat")

MAX_MESSAGE_CHARS = 4000


@dataclass
class ChatResult:

    response: str
    session_id: str
    handed_off: bool = False
    summary: str | None = None


class ChatHandler:
    """Runs the per-request pipeline.

    Session read, prompt assembly, gateway call, reply parse, session update,
    then handoff when the reply asks for it. The session is only written after
    the gateway succeeds, so a failed call leaves it as it was.
    """

    def __init__(
        self,
        store: SessionStore,
        gateway: CompletionGateway,
        dispatcher: HandoffDispatcher,
        instructions: str,
        window_limit: int = WINDOW_LIMIT,
        metrics: MetricsRegistry | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.dispatcher = dispatcher
        self.instructions = instructions
        self.window_limit = window_limit
        self.metrics = metrics

    @staticmethod
    def validate(message: object) -> str:
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("No message provided", field="message")
        if len(message) > MAX_MESSAGE_CHARS:
            raise ValidationError(
                f"Message exceeds {MAX_MESSAGE_CHARS} characters", field="message"
            )
        return message

    async def handle(self, token: str, message: object) -> ChatResult:
        """Process one visitor message.

        Raises:
            ValidationError: empty or oversized message (nothing touched).
            ProviderError: the completion gateway failed (session untouched).
            GatewayTimeoutError: a thread run never finished (session untouched).
        """
        sm = RequestStateMachine(get_request_id() or uuid.uuid4().hex[:8])

        with track_request(message if isinstance(message, str) else "") as tracker:
            try:
                text = self.validate(message)

                session = self.store.get_or_create(token)
                sm.transition(RequestState.SESSION_RESOLVED)
                tracker.session_id = session.session_id

                if isinstance(self.gateway, StatefulGateway):
                    instructions = build_system_prompt(self.instructions, session.memory)
                    sm.transition(RequestState.PROMPT_BUILT)
                    thread_handle, raw = await self.gateway.complete_in_thread(
                        session.thread_handle, text, instructions
                    )
                else:
                    messages = assemble(
                        self.instructions,
                        session.memory,
                        pending_conversation(session, text, self.window_limit),
                    )
                    sm.transition(RequestState.PROMPT_BUILT)
                    raw = await self.gateway.complete(messages)
                    thread_handle = None
                sm.transition(RequestState.GATEWAY_CALLED)
            except AitanaError:
                sm.transition(RequestState.ERROR_RESPONDED)
                raise

            parsed = parse_reply(raw, session.memory)
            sm.transition(RequestState.PARSED)
            log_parse(parsed.block_status, len(parsed.new_memory))

            if thread_handle is not None:
                session.thread_handle = thread_handle
            apply(session, text, raw, parsed.new_memory, self.window_limit)
            self.store.save(session)
            sm.transition(RequestState.UPDATED)
            tracker.window_turns = len(session.conversation)

            summary = await self.dispatcher.maybe_dispatch(session, parsed.should_handoff)
            if summary is not None:
                sm.transition(RequestState.HANDED_OFF)

            sm.transition(RequestState.RESPONDED)
            if self.metrics is not None:
                self.metrics.counter("chat_turns_total", "Completed chat turns").inc()

            _log.info(
                "Chat turn done",
                session=session.session_id[:8],
                turns=len(session.conversation),
                block=parsed.block_status,
                handoff=summary is not None,
            )
            return ChatResult(
                response=parsed.visible_text,
                session_id=session.session_id,
                handed_off=summary is not None,
                summary=summary,
            )
