"""Utility modules."""

from .logging import (
    setup_logging,
    get_logger,
    LogContext,
    JSONFormatter,
    log_config_summary,
    mask_sensitive,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "LogContext",
    "JSONFormatter",
    "log_config_summary",
    "mask_sensitive",
]
