"""Logging setup shared by the bulk translator modules.

Usage:
    from bulk_translator.logging_config import setup_logging, get_logger

    setup_logging("INFO")
    logger = get_logger(__name__)
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Union


DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_LEVEL = logging.WARNING

AUDIT_LOGGER_NAME = "bulk_translator.audit"


def resolve_level(level: Union[int, str, None]) -> int:
    """Translate a level name such as ``"info"`` into its numeric value."""

    if level is None:
        return DEFAULT_LOG_LEVEL
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(level.strip().upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level '{level}'.")
    return numeric


def setup_logging(
    level: Union[int, str, None] = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> None:
    """
    Configure the root logger once at application startup.

    Args:
        level: Threshold as a number or a level name. Defaults to WARNING.
        log_format: Format string for log records.
        date_format: strftime format for the timestamp.
    """
    logging.basicConfig(
        level=resolve_level(level),
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger, typically called with the module's ``__name__``."""

    return logging.getLogger(name)


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(AUDIT_LOGGER_NAME)
