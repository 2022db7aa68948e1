"""
Reply parsing for the trailing data block protocol.

A model reply normally ends with ``#DATA: {json} #ENDDATA``, optionally with
the ``#FORWARD_TELEGRAM#`` completion marker. The block holds the updated
booking memory and must never reach the visitor.
"""

import re
from dataclasses import dataclass
from typing import Any, Union

from aitana.core.logging import get_logger
from .memory import canonical_json, load_object

_log = get_logger("booking.parser")

DATA_START = "#DATA:"
DATA_END = "#ENDDATA"
COMPLETION_MARKER = "#FORWARD_TELEGRAM#"

MARKERS = (COMPLETION_MARKER, DATA_START, DATA_END)

_EXTRA_BLANK_LINES = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")


@dataclass(frozen=True)
class Found:
    record: dict[str, Any]
    start: int
    end: int


@dataclass(frozen=True)
class FoundMalformed:
    start: int
    end: int


@dataclass(frozen=True)
class NotFound:
    pass


DataBlock = Union[Found, FoundMalformed, NotFound]


@dataclass(frozen=True)
class ParsedReply:
    visible_text: str
    new_memory: str
    should_handoff: bool
    block_status: str


def scan_data_blocks(raw: str) -> list[DataBlock]:
    """Every data block in ``raw``, in order. Never raises.

    Each start marker pairs with the first end marker after it, unless another
    start marker comes first, in which case the block is unterminated and runs
    up to that next start. Spans are half-open ``[start, end)`` offsets into
    ``raw`` covering the markers, and never overlap.
    """
    blocks: list[DataBlock] = []
    pos = 0
    while True:
        start = raw.find(DATA_START, pos)
        end = raw.find(DATA_END, pos)
        if start == -1 and end == -1:
            return blocks

        if start == -1 or (end != -1 and end < start):
            # orphan end marker: the JSON before it sits on the same paragraph
            blank = raw.rfind("\n\n", pos, end)
            span_start = blank if blank != -1 else max(pos, raw.rfind("\n", pos, end) + 1)
            pos = end + len(DATA_END)
            blocks.append(FoundMalformed(span_start, pos))
            continue

        body_start = start + len(DATA_START)
        end = raw.find(DATA_END, body_start)
        next_start = raw.find(DATA_START, body_start)
        if end == -1 or (next_start != -1 and next_start < end):
            pos = next_start if next_start != -1 else len(raw)
            blocks.append(FoundMalformed(start, pos))
            continue

        pos = end + len(DATA_END)
        record = load_object(raw[body_start:end].replace(COMPLETION_MARKER, "").strip())
        blocks.append(FoundMalformed(start, pos) if record is None else Found(record, start, pos))


def extract_data_block(raw: str) -> DataBlock:
    """The block that decides the next memory.

    The last block that parses wins; with none parseable, the last malformed
    block is reported.
    """
    blocks = scan_data_blocks(raw)
    for block in reversed(blocks):
        if isinstance(block, Found):
            return block
    return blocks[-1] if blocks else NotFound()


def _scrub(text: str) -> str:
    for marker in MARKERS:
        text = text.replace(marker, "")
    return _EXTRA_BLANK_LINES.sub("\n\n", text).strip()


def _cut(raw: str, blocks: list[DataBlock]) -> str:
    pieces = []
    pos = 0
    for block in blocks:
        pieces.append(raw[pos:block.start])  # type: ignore[union-attr]
        pos = block.end  # type: ignore[union-attr]
    pieces.append(raw[pos:])
    return "\n\n".join(pieces)


def parse_reply(raw: str, previous_memory: str) -> ParsedReply:
    """Split a model reply into visitor text, next memory and handoff flag.

    Every block is cut from the visible text. The last parseable block sets
    the next memory; without one ``previous_memory`` is kept.
    """
    blocks = scan_data_blocks(raw)
    should_handoff = COMPLETION_MARKER in raw

    found = [b for b in blocks if isinstance(b, Found)]
    if found:
        new_memory = canonical_json(found[-1].record)
        status = "found"
    elif blocks:
        new_memory = previous_memory
        status = "malformed"
        _log.warning("Malformed data block, memory retained", blocks=len(blocks))
    else:
        new_memory = previous_memory
        status = "missing"
    if found and len(blocks) > 1:
        _log.debug("Several data blocks in reply", blocks=len(blocks), parsed=len(found))

    if not blocks and not should_handoff:
        visible = raw.strip()
    else:
        visible = _scrub(_cut(raw, blocks))

    return ParsedReply(
        visible_text=visible,
        new_memory=new_memory,
        should_handoff=should_handoff,
        block_status=status,
    )
