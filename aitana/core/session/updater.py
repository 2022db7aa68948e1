from aitana.config import WINDOW_LIMIT
from .models import Role, Session, Turn


def append_turn(conversation: list[Turn], role: Role, content: str, limit: int = WINDOW_LIMIT) -> list[Turn]:
    """Append a turn in place, evicting the oldest until ``len <= limit``."""
    conversation.append(Turn(role, content))
    while len(conversation) > limit:
        conversation.pop(0)
    return conversation


def pending_conversation(session: Session, user_text: str, limit: int = WINDOW_LIMIT) -> list[Turn]:
    """Windowed copy of the conversation with the new user turn, session untouched."""
    return append_turn(list(session.conversation), "user", user_text, limit)


def apply(
    session: Session,
    user_turn: str,
    assistant_turn: str,
    new_memory: str,
    limit: int = WINDOW_LIMIT,
) -> Session:
    """Commit a completed exchange to the session."""
    append_turn(session.conversation, "user", user_turn, limit)
    append_turn(session.conversation, "assistant", assistant_turn, limit)
    session.memory = new_memory
    session.touch()
    return session
