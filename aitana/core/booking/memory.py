"""Structured booking memory carried between turns.

The memory is stored as serialized JSON text on the session. It is only ever
checked for being a JSON object; field contents are whatever the model wrote.
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

MEMORY_FIELDS = (
    "name",
    "email",
    "phone",
    "location",
    "artist",
    "priceRange",
    "description",
    "date",
    "alreadyGreeted",
)

DEFAULT_MEMORY_JSON = (
    '{"name":"","email":"","phone":"","location":"","artist":"",'
    '"priceRange":"","description":"","date":"","alreadyGreeted":false}'
)


def load_object(text: str) -> dict[str, Any] | None:
    """Decode ``text`` as a JSON object, or None if it is anything else."""
    try:
        value = json.loads(text)
    except (TypeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def is_structured_record(text: str) -> bool:
    return load_object(text) is not None


def canonical_json(obj: dict[str, Any]) -> str:
    """Compact serialization used for everything stored on a session."""
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


class MemoryRecord(BaseModel):
    """Typed view over a memory object.

    Missing fields fall back to empty values and unknown fields are kept.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    artist: str = ""
    price_range: str = Field(default="", alias="priceRange")
    description: str = ""
    date: str = ""
    already_greeted: bool = Field(default=False, alias="alreadyGreeted")

    @field_validator(
        "name", "email", "phone", "location", "artist",
        "price_range", "description", "date",
        mode="before",
    )
    @classmethod
    def _as_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("already_greeted", mode="before")
    @classmethod
    def _as_flag(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        return bool(value)

    @classmethod
    def from_json(cls, text: str) -> "MemoryRecord":
        """Raises ValueError when ``text`` is not a JSON object."""
        obj = load_object(text)
        if obj is None:
            raise ValueError("memory is not a JSON object")
        return cls.model_validate(obj)

    def to_json(self) -> str:
        return canonical_json(self.model_dump(by_alias=True))


DEFAULT_MEMORY = MemoryRecord()
