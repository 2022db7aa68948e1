"""Lifecycle of a single chat request."""

from enum import Enum
from aitana.core.logging import get_logger

_log = get_logger("core.session")


class RequestState(str, Enum):
    RECEIVED = "received"
    SESSION_RESOLVED = "session_resolved"
    PROMPT_BUILT = "prompt_built"
    GATEWAY_CALLED = "gateway_called"
    PARSED = "parsed"
    UPDATED = "updated"
    HANDED_OFF = "handed_off"
    RESPONDED = "responded"
    ERROR_RESPONDED = "error_responded"


TERMINAL_STATES = frozenset({RequestState.RESPONDED, RequestState.ERROR_RESPONDED})

VALID_TRANSITIONS = {
    RequestState.RECEIVED: {RequestState.SESSION_RESOLVED, RequestState.ERROR_RESPONDED},
    RequestState.SESSION_RESOLVED: {RequestState.PROMPT_BUILT, RequestState.ERROR_RESPONDED},
    RequestState.PROMPT_BUILT: {RequestState.GATEWAY_CALLED, RequestState.ERROR_RESPONDED},
    RequestState.GATEWAY_CALLED: {RequestState.PARSED, RequestState.ERROR_RESPONDED},
    RequestState.PARSED: {RequestState.UPDATED, RequestState.ERROR_RESPONDED},
    RequestState.UPDATED: {RequestState.HANDED_OFF, RequestState.RESPONDED, RequestState.ERROR_RESPONDED},
    RequestState.HANDED_OFF: {RequestState.RESPONDED, RequestState.ERROR_RESPONDED},
    RequestState.RESPONDED: set(),
    RequestState.ERROR_RESPONDED: set(),
}


class RequestTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


class RequestStateMachine:

    def __init__(self, request_id: str):
        self.request_id = request_id
        self._state = RequestState.RECEIVED
        self.history: list[RequestState] = [RequestState.RECEIVED]

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def finished(self) -> bool:
        return self._state in TERMINAL_STATES

    def transition(self, new_state: RequestState) -> None:
        """Transition to a new state.

        Args:
            new_state: Target state

        Raises:
            RequestTransitionError: If transition is not valid
        """
        if new_state not in VALID_TRANSITIONS.get(self._state, set()):
            raise RequestTransitionError(
                f"Invalid: {self._state.value} -> {new_state.value}"
            )
        old = self._state
        self._state = new_state
        self.history.append(new_state)
        _log.debug(
            "Request transition",
            req=self.request_id,
            old=old.value,
            new=new_state.value,
        )
