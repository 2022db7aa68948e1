"""Split long outbound text into Telegram-sized chunks."""

from __future__ import annotations

TELEGRAM_MAX_LENGTH = 4096

# (separator, minimum fraction of the limit the cut must reach)
_BREAKS = (("\n\n", 2), ("\n", 2), (" ", 3))


def _cut_at(text: str, limit: int) -> int:
    window = text[:limit]
    for sep, divisor in _BREAKS:
        pos = window.rfind(sep)
        if pos > limit // divisor:
            return pos + len(sep)
    return limit


def chunk_message(text: str, max_length: int) -> list[str]:
    """Paragraph breaks win over line breaks, which win over spaces.

    A run with no usable break is cut hard at ``max_length``.
    """
    chunks: list[str] = []
    rest = text
    while len(rest) > max_length:
        cut = _cut_at(rest, max_length)
        head, rest = rest[:cut].rstrip(), rest[cut:].lstrip("\n ")
        if head:
            chunks.append(head)
    if rest or not chunks:
        chunks.append(rest)
    return chunks


def chunk_for_telegram(text: str) -> list[str]:
    return chunk_message(text, TELEGRAM_MAX_LENGTH)
