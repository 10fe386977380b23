"""Logging configuration for Cookie Hunter.

Two destinations: a rotating debug log fed by the root logger, and an audit
log that records only what the engine actually did to the cookie store.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .constants import (
    LOGS_DIR,
    DEBUG_LOG_FILE,
    AUDIT_LOG_FILE,
    DEBUG_LOG_MAX_BYTES,
    DEBUG_LOG_BACKUP_COUNT,
    AUDIT_LOG_MAX_BYTES,
    AUDIT_LOG_BACKUP_COUNT,
)

AUDIT_LOGGER_NAME = "audit"

DEBUG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
AUDIT_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def _rotating_handler(path: Path, max_bytes: int, backups: int, level: int, fmt: str) -> logging.Handler:
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        # Only file handlers hold resources this module opened
        if isinstance(handler, logging.FileHandler):
            handler.close()


def setup_logging(debug_mode: bool = False) -> None:
    """
    Configure application logging.

    Safe to call more than once; previous handlers are closed and replaced.

    Args:
        debug_mode: If True, also echo DEBUG records to the console
    """
    LOGS_DIR.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    _reset_handlers(root_logger)
    root_logger.addHandler(
        _rotating_handler(
            DEBUG_LOG_FILE, DEBUG_LOG_MAX_BYTES, DEBUG_LOG_BACKUP_COUNT, logging.DEBUG, DEBUG_FORMAT
        )
    )
    if debug_mode:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(DEBUG_FORMAT))
        root_logger.addHandler(console_handler)

    # Audit records never reach the debug log
    audit_logger = get_audit_logger()
    audit_logger.setLevel(logging.INFO)
    audit_logger.propagate = False
    _reset_handlers(audit_logger)
    audit_logger.addHandler(
        _rotating_handler(
            AUDIT_LOG_FILE, AUDIT_LOG_MAX_BYTES, AUDIT_LOG_BACKUP_COUNT, logging.INFO, AUDIT_FORMAT
        )
    )


def get_audit_logger() -> logging.Logger:
    """Return the audit logger instance."""
    return logging.getLogger(AUDIT_LOGGER_NAME)


def log_cookie_removal(url: str, name: str, total_removed: int) -> None:
    """
    Record a cookie deletion confirmed by the store.

    Args:
        url: URL the cookie was removed from
        name: Cookie name
        total_removed: Running count of removed cookies
    """
    get_audit_logger().info("REMOVE | url=%s | name=%s | total=%d", url, name, total_removed)


def log_sweep(examined: int, enqueued: int) -> None:
    """Record a periodic sweep that queued cookies for removal."""
    get_audit_logger().info("SWEEP | examined=%d | enqueued=%d", examined, enqueued)
