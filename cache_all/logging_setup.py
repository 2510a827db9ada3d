"""
cache-all — Logging Setup

Applies the process-wide logging format. Library modules only create
``logging.getLogger(__name__)`` loggers; applications call
configure_logging() once at startup.
"""

import logging

from .config import AppConfig, LogLevel, get_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: LogLevel | str | None = None, config: AppConfig | None = None) -> None:
    """
    Configure root logging.

    Args:
        level: Explicit level; falls back to the configured log_level
        config: Configuration to read log_level from (global config if None)
    """
    if level is None:
        level = (config or get_config()).log_level
    if isinstance(level, LogLevel):
        level = level.value

    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, force=True)
    logging.getLogger(__name__).debug("Logging configured at %s", level)
