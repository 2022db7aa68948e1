import os
from pathlib import Path

from dotenv import load_dotenv
from aitana.core.logging import get_logger
_log = get_logger("config")

load_dotenv()


def _get_int_env(name: str, default: int) -> int:
    """Get integer value from environment variable.

    Args:
        name: Environment variable name
        default: Default value if not set or invalid

    Returns:
        Integer value from env or default
    """
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        _log.warning("Invalid int env", env=name, value=raw)
        return default


def _get_float_env(name: str, default: float | None) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        _log.warning("Invalid float env", env=name, value=raw)
        return default


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


APP_VERSION = os.getenv("APP_VERSION", "1.0")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = _get_int_env("PORT", 3000)

CORS_ALLOW_ORIGINS = os.getenv("CORS_ALLOW_ORIGINS", "")

def get_cors_origins() -> list:
    """Get allowed CORS origins from environment or defaults.

    Returns:
        List of allowed origin URLs
    """
    if CORS_ALLOW_ORIGINS:
        return [origin.strip() for origin in CORS_ALLOW_ORIGINS.split(",") if origin.strip()]
    return [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

PROJECT_ROOT = Path(__file__).parent.parent.resolve()
PUBLIC_DIR = Path(os.getenv("PUBLIC_DIR", str(PROJECT_ROOT / "public")))

# =============================================================================
# Completion gateway
# =============================================================================
# openai | openai_assistant | anthropic | google
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai").strip().lower()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_CHAT_MODEL = os.getenv("OPENAI_CHAT_MODEL", "gpt-4")
OPENAI_ASSISTANT_ID = os.getenv("OPENAI_ASSISTANT_ID")

ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_CHAT_MODEL = os.getenv("ANTHROPIC_CHAT_MODEL", "claude-sonnet-4-5-20250929")

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_CHAT_MODEL = os.getenv("GEMINI_CHAT_MODEL", "gemini-2.5-flash")

LLM_TEMPERATURE = _get_float_env("LLM_TEMPERATURE", 0.7)
LLM_MAX_TOKENS = _get_int_env("LLM_MAX_TOKENS", 1024)
GATEWAY_MAX_RETRIES = _get_int_env("GATEWAY_MAX_RETRIES", 2)

ASSISTANT_POLL_INTERVAL = _get_float_env("ASSISTANT_POLL_INTERVAL", 0.5)
ASSISTANT_MAX_POLLS = _get_int_env("ASSISTANT_MAX_POLLS", 120)

INSTRUCTION_TEMPLATE_PATH = os.getenv("INSTRUCTION_TEMPLATE_PATH")

# =============================================================================
# Sessions
# =============================================================================
# Two user/assistant pairs
WINDOW_LIMIT = _get_int_env("WINDOW_LIMIT", 4)
# Unset keeps sessions until process exit
SESSION_IDLE_TIMEOUT = _get_float_env("SESSION_IDLE_TIMEOUT", None)
SESSION_REAP_INTERVAL = _get_float_env("SESSION_REAP_INTERVAL", 60.0)
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "sessionId")
SESSION_COOKIE_SECURE = _get_bool_env("SESSION_COOKIE_SECURE", False)

# =============================================================================
# Handoff relay (Telegram)
# =============================================================================
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
TELEGRAM_CHAT_ID = os.getenv("TELEGRAM_CHAT_ID")

HANDOFF_CREATE_CALENDAR_EVENT = _get_bool_env("HANDOFF_CREATE_CALENDAR_EVENT", False)
APPOINTMENT_DEFAULT_MINUTES = _get_int_env("APPOINTMENT_DEFAULT_MINUTES", 120)

# =============================================================================
# Google Sheets / Calendar
# =============================================================================
# Service account JSON, inline
GOOGLE_SHEETS_KEY = os.getenv("GOOGLE_SHEETS_KEY")
GOOGLE_CALENDAR_KEY = os.getenv("GOOGLE_CALENDAR_KEY")

SPREADSHEET_ID = os.getenv("SPREADSHEET_ID")
ROSTER_SHEET_RANGE = os.getenv("ROSTER_SHEET_RANGE", "Artists!A1:E")

CALENDAR_ID = os.getenv("CALENDAR_ID")
CALENDAR_LIST_LIMIT = _get_int_env("CALENDAR_LIST_LIMIT", 10)

# =============================================================================
# Admin / alerts
# =============================================================================
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY")
ALERT_WEBHOOK_URL = os.getenv("ALERT_WEBHOOK_URL")

# =============================================================================
# Timeouts
# =============================================================================
TIMEOUT_API_CALL = _get_int_env("TIMEOUT_API_CALL", 120)
TIMEOUT_HTTP_DEFAULT = _get_float_env("TIMEOUT_HTTP_DEFAULT", 30.0)
TIMEOUT_HTTP_CONNECT = _get_float_env("TIMEOUT_HTTP_CONNECT", 5.0)

SHUTDOWN_TASK_TIMEOUT = _get_float_env("SHUTDOWN_TASK_TIMEOUT", 3.0)
SHUTDOWN_HTTP_POOL_TIMEOUT = _get_float_env("SHUTDOWN_HTTP_POOL_TIMEOUT", 2.0)
