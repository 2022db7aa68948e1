"""Logging settings, console styles and the per-request id context."""

import logging
import os
import sys
from contextvars import ContextVar, Token
from pathlib import Path
from zoneinfo import ZoneInfo

SHOP_TZ = ZoneInfo(os.getenv("SHOP_TZ", "America/Phoenix"))

LOG_LEVEL_MAP = {
    name: getattr(logging, name)
    for name in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
}
DEFAULT_LEVEL = LOG_LEVEL_MAP.get(os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
LOG_JSON = os.getenv("LOG_JSON", "").lower() in ("1", "true", "yes")
LOG_DIR = Path(os.getenv("LOG_DIR", Path(__file__).resolve().parents[3] / "logs"))

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(request_id: str) -> Token:
    return _request_id.set(request_id)


def reset_request_id(token: Token) -> None:
    _request_id.reset(token)


def get_request_id() -> str | None:
    return _request_id.get()


def colors_enabled() -> bool:
    return not os.getenv("NO_COLOR") and sys.stdout.isatty()


RESET = "\033[0m"
DIM = "\033[2m"
GREY = "\033[90m"

# levelno -> (fixed-width label, color)
LEVEL_STYLES = {
    logging.DEBUG: ("DEBUG", "\033[36m"),
    logging.INFO: (" INFO", "\033[32m"),
    logging.WARNING: (" WARN", "\033[33m"),
    logging.ERROR: ("ERROR", "\033[31m"),
    logging.CRITICAL: ("CRIT!", "\033[35m"),
}

# top-level package area -> (abbreviation, color)
AREA_STYLES = {
    "api": ("API", "\033[94m"),
    "app": ("APP", "\033[94m"),
    "core": ("COR", "\033[96m"),
    "session": ("SES", "\033[95m"),
    "booking": ("BKG", "\033[95m"),
    "llm": ("LLM", "\033[92m"),
    "channels": ("CHN", "\033[93m"),
    "integrations": ("INT", "\033[38;5;208m"),
}

# field name -> color, for the values worth spotting in a busy console
FIELD_COLORS = {
    "provider": "\033[95m",
    "model": "\033[95m",
    "session": "\033[92m",
    "handoff": "\033[92m",
    "block": "\033[96m",
    "turns": "\033[96m",
    "error": "\033[31m",
}
