from .protocol import MessageRelay, Platform, RelayHealth
from .message_chunker import chunk_message, chunk_for_telegram

__all__ = [
    "MessageRelay",
    "Platform",
    "RelayHealth",
    "chunk_message",
    "chunk_for_telegram",
]
