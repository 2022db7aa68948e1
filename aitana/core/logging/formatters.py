import json
import logging
import re
from datetime import datetime
from typing import Any

from .constants import (
    AREA_STYLES,
    DIM,
    FIELD_COLORS,
    GREY,
    LEVEL_STYLES,
    RESET,
    SHOP_TZ,
    colors_enabled,
    get_request_id,
)

# Client contact details never reach the log sinks in clear text.
REDACTED_KEYS = frozenset({"email", "phone", "token", "api_key"})


def redact(key: str, value: Any) -> Any:
    if key.lower() not in REDACTED_KEYS or not value:
        return value
    s = str(value)
    if len(s) <= 4:
        return "***"
    return f"{s[:2]}***{s[-2:]}"


_EMAIL = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
_PHONE = re.compile(r"\+?\d[\d\s().-]{5,}\d")


def mask_contacts(text: str) -> str:
    """Free text variant of :func:`redact` for visitor messages."""
    text = _EMAIL.sub("[email]", text)
    # seven or more digits reads as a phone number
    return _PHONE.sub(lambda m: "[phone]" if sum(c.isdigit() for c in m.group()) >= 7 else m.group(), text)


def _area(name: str) -> tuple[str, list[str]]:
    parts = name.split(".")
    if parts[0] == "aitana" and len(parts) > 1:
        parts = parts[1:]
    return parts[0].lower(), parts[1:]


def module_display(name: str) -> str:
    """``aitana.llm.openai_client`` -> ``LLM|openai_c…``, at most 14 chars."""
    area, rest = _area(name)
    label = AREA_STYLES.get(area, (area[:3].upper(), ""))[0]
    if rest:
        sub = ".".join(rest)
        label = f"{label}|{sub if len(sub) <= 9 else sub[:8] + '…'}"
    return label if len(label) <= 14 else label[:13] + "…"


def compact(value: Any, max_len: int = 60) -> str:
    """Short console rendering of a field value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple)):
        return f"[{', '.join(map(str, value))}]" if len(value) <= 3 else f"[{len(value)} items]"
    if isinstance(value, dict):
        return f"{{{len(value)} keys}}" if value else "{}"
    text = str(value)
    return text if len(text) <= max_len else text[: max_len - 3] + "..."


def _fields(record: logging.LogRecord) -> dict[str, Any]:
    extra = getattr(record, "extra_data", None) or {}
    return {k: redact(k, v) for k, v in extra.items()}


class SmartFormatter(logging.Formatter):
    """Colored single-line console format: time, request id, level, area, message, fields."""

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and colors_enabled()

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{RESET}" if self.use_colors and color else text

    def format(self, record: logging.LogRecord) -> str:
        label, level_color = LEVEL_STYLES.get(record.levelno, (record.levelname[:5], ""))
        area, _ = _area(record.name)
        area_color = AREA_STYLES.get(area, ("", ""))[1]

        now = datetime.now(SHOP_TZ)
        head = [self._paint(f"{now:%H:%M:%S}.{now.microsecond // 1000:03d}", GREY)]
        req_id = get_request_id()
        if req_id:
            head.append(self._paint(req_id[:8], DIM))
        head.append(self._paint(label, level_color))
        head.append(f"[{self._paint(f'{module_display(record.name):14}', area_color)}]")
        head.append(record.getMessage())
        line = " ".join(head)

        fields = _fields(record)
        if fields:
            rendered = " ".join(
                f"{self._paint(k, FIELD_COLORS.get(k.lower(), GREY))}={compact(v)}"
                for k, v in fields.items()
            )
            line += f" {self._paint('│', GREY)} {rendered}"

        if record.exc_info:
            line += "\n" + self._paint(self.formatException(record.exc_info), level_color)
        return line


class PlainFormatter(logging.Formatter):
    """Uncolored format for the rotating log file."""

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(SHOP_TZ)
        req_id = get_request_id()
        scope = f"{req_id[:8]}│" if req_id else ""
        line = (
            f"{now:%Y-%m-%d %H:%M:%S}.{now.microsecond // 1000:03d} "
            f"{record.levelname:7} [{scope}{module_display(record.name):14}] {record.getMessage()}"
        )
        fields = _fields(record)
        if fields:
            line += " │ " + " ".join(f"{k}={compact(v, max_len=500)}" for k, v in fields.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class JsonFormatter(logging.Formatter):
    """One JSON object per line for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(SHOP_TZ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        req_id = get_request_id()
        if req_id:
            payload["req"] = req_id
        payload.update(_fields(record))
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)
