"""Logging utilities."""

from kpfeed.core.logging.config import LogConfig
from kpfeed.core.logging.logger import (
    configure_logging,
    current_run_id,
    get_logger,
    log_context,
    logger,
)

__all__ = [
    "LogConfig",
    "configure_logging",
    "current_run_id",
    "get_logger",
    "log_context",
    "logger",
]
