import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any

from .constants import DEFAULT_LEVEL, LOG_DIR, LOG_JSON, LOG_LEVEL_MAP
from .formatters import JsonFormatter, PlainFormatter, SmartFormatter

logging.getLogger().addHandler(logging.NullHandler())


def _file_handler(filename: str, formatter: logging.Formatter, level: int, rotate: bool) -> logging.Handler | None:
    """File sink under LOG_DIR, or None when the directory is missing or unwritable."""
    if not LOG_DIR.is_dir():
        return None
    try:
        if rotate:
            handler: logging.Handler = RotatingFileHandler(
                LOG_DIR / filename, encoding="utf-8", maxBytes=10 * 1024 * 1024, backupCount=5
            )
        else:
            handler = logging.FileHandler(LOG_DIR / filename, encoding="utf-8")
    except OSError as e:
        print(f"log sink {filename} unavailable: {e}", file=sys.stderr)
        return None
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def _build_handlers(level: int) -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(SmartFormatter(use_colors=True))
    console.setLevel(level)

    handlers: list[logging.Handler | None] = [
        console,
        _file_handler("aitana.log", PlainFormatter(), logging.DEBUG, rotate=True),
    ]
    if LOG_JSON:
        handlers.append(_file_handler("aitana.jsonl", JsonFormatter(), logging.INFO, rotate=False))
    return [h for h in handlers if h is not None]


class StructuredLogger:
    """Logger that takes keyword fields.

    ``_log.info("Handoff sent", session="ab12cd34", handoff=2)`` keeps the
    message fixed and renders the fields after it on every sink.
    """

    def __init__(self, name: str, level: int | None = None):
        self._logger = logging.getLogger(name)
        level = level or DEFAULT_LEVEL
        self._logger.setLevel(level)
        if not self._logger.handlers:
            for handler in _build_handlers(level):
                self._logger.addHandler(handler)
            self._logger.propagate = False

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, msg: str, exc_info: Any = None, **fields: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        record = self._logger.makeRecord(self._logger.name, level, "", 0, msg, (), exc_info)
        record.extra_data = fields
        self._logger.handle(record)

    def debug(self, msg: str, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._log(logging.INFO, msg, **fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._log(logging.WARNING, msg, **fields)

    def error(self, msg: str, **fields: Any) -> None:
        self._log(logging.ERROR, msg, **fields)

    def critical(self, msg: str, **fields: Any) -> None:
        self._log(logging.CRITICAL, msg, **fields)

    def exception(self, msg: str, **fields: Any) -> None:
        self._log(logging.ERROR, msg, exc_info=sys.exc_info(), **fields)


_loggers: dict[str, StructuredLogger] = {}


def get_logger(name: str = "aitana") -> StructuredLogger:
    logger = _loggers.get(name)
    if logger is None:
        logger = _loggers[name] = StructuredLogger(name)
    return logger


def set_log_level(level: str) -> None:
    """Change the level of every logger handed out so far (file sinks stay at DEBUG)."""
    numeric = LOG_LEVEL_MAP.get(level.upper(), logging.INFO)
    for logger in _loggers.values():
        logger._logger.setLevel(numeric)
        for handler in logger._logger.handlers:
            if type(handler) is logging.StreamHandler:
                handler.setLevel(numeric)
