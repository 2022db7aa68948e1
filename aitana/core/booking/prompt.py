"""Builds the ordered message list sent to the completion gateway."""

from typing import Sequence

from aitana.core.session.models import Turn
from .instructions import DATA_BLOCK_RULES
from .memory import DEFAULT_MEMORY_JSON

MEMORY_HEADER = "Current Known JSON Memory:"


def build_system_prompt(template: str, memory: str | None) -> str:
    safe_memory = memory or DEFAULT_MEMORY_JSON
    return f"{template.rstrip()}\n\n{DATA_BLOCK_RULES.rstrip()}\n\n{MEMORY_HEADER}\n{safe_memory}\n"


def assemble(template: str, memory: str | None, conversation: Sequence[Turn]) -> list[dict[str, str]]:
    """System instruction first, then the conversation turns in order.

    The conversation is already windowed by the caller and is passed through
    without truncation.
    """
    messages = [{"role": "system", "content": build_system_prompt(template, memory)}]
    messages.extend(turn.to_message() for turn in conversation)
    return messages
