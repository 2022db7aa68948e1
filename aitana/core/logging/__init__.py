from .constants import (
    AREA_STYLES,
    SHOP_TZ,
    get_request_id,
    reset_request_id,
    set_request_id,
)
from .decorator import logged
from .formatters import JsonFormatter, PlainFormatter, SmartFormatter, redact
from .structured_logger import StructuredLogger, get_logger, set_log_level
from . import request_tracker
from .request_tracker import (
    RequestTracker,
    end_request,
    get_tracker,
    log_gateway,
    log_handoff,
    log_parse,
    start_request,
    track_request,
)
from .error_monitor import error_monitor

__all__ = [
    "get_logger",
    "StructuredLogger",
    "SmartFormatter",
    "PlainFormatter",
    "JsonFormatter",
    "redact",
    "AREA_STYLES",
    "SHOP_TZ",
    "set_request_id",
    "reset_request_id",
    "get_request_id",
    "set_log_level",
    "logged",
    "error_monitor",
    "request_tracker",
    "RequestTracker",
    "start_request",
    "get_tracker",
    "end_request",
    "track_request",
    "log_gateway",
    "log_parse",
    "log_handoff",
]
