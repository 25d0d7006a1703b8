"""Structured logging for application startup."""

import json
import logging
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

ROOT_LOGGER = __name__.split(".")[0]  # package root, parent of every module logger

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

MASK = "***"

# Record fields whose name contains one of these are never written in clear
SENSITIVE_MARKERS = ("password", "secret", "token")

# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName",
))


def mask_sensitive(value: Any, markers: tuple[str, ...] = SENSITIVE_MARKERS) -> Any:
    """
    Return ``value`` with every sensitive key masked, descending into dicts.

    A key is sensitive when its lowercased name contains one of ``markers``.
    Unset (None) values stay None so a missing secret is still visible.
    """
    if not isinstance(value, dict):
        return value
    masked = {}
    for key, item in value.items():
        if item is not None and any(m in str(key).lower() for m in markers):
            masked[key] = MASK
        else:
            masked[key] = mask_sensitive(item, markers)
    return masked


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line, secrets masked."""

    def __init__(
        self,
        include_location: bool = False,
        static_fields: Optional[dict] = None,
        sensitive_markers: tuple[str, ...] = SENSITIVE_MARKERS,
    ):
        super().__init__()
        self.include_location = include_location
        self.static_fields = static_fields or {}
        self.sensitive_markers = sensitive_markers

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_data: dict[str, Any] = {
            "timestamp": created.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_location:
            log_data["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        }
        for key, value in mask_sensitive(extras, self.sensitive_markers).items():
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        for key, value in self.static_fields.items():
            log_data.setdefault(key, value)

        return json.dumps(log_data, default=str)


class ContextFilter(logging.Filter):
    """Add thread-local context to log records."""

    _context = threading.local()

    @classmethod
    def set_context(cls, **kwargs) -> None:
        if not hasattr(cls._context, "data"):
            cls._context.data = {}
        cls._context.data.update(kwargs)

    @classmethod
    def clear_context(cls) -> None:
        cls._context.data = {}

    @classmethod
    def get_context(cls) -> dict:
        if not hasattr(cls._context, "data"):
            cls._context.data = {}
        return cls._context.data.copy()

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.get_context().items():
            setattr(record, key, value)
        return True


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure the package root logger with a single stream handler.

    Calling it again replaces the previous handler, so startup can
    reconfigure once the environment is known.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines instead of plain text
        stream: Output stream (defaults to stdout)

    Returns:
        The configured root logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper()))
    for old in list(logger.handlers):
        logger.removeHandler(old)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    # On the handler so records propagated from module loggers get context too
    handler.addFilter(ContextFilter())
    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger of the package root, e.g. ``get_logger("bootstrap")``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


class LogContext:
    """Context manager for scoped logging context."""

    def __init__(self, **kwargs):
        self.context = kwargs
        self.previous_context: dict = {}

    def __enter__(self):
        self.previous_context = ContextFilter.get_context()
        ContextFilter.set_context(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        ContextFilter.clear_context()
        if self.previous_context:
            ContextFilter.set_context(**self.previous_context)
        return False


def log_config_summary(logger: logging.Logger, summary: dict[str, Any]) -> None:
    """Log the loaded configuration as one structured event."""
    logger.info(
        f"Configuration loaded: NODE_ENV={summary.get('NODE_ENV')}, PORT={summary.get('PORT')}",
        extra={
            "event_type": "config_loaded",
            "config": summary,
        },
    )
