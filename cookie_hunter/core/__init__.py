"""Core module for Cookie Hunter."""

from .config import ConfigManager, ConfigError, Settings
from .logging_config import setup_logging, get_audit_logger, log_cookie_removal, log_sweep
from .models import Cookie, CookieChange, CookieEntry, RemovalDetails
from .identity import (
    cookie_url_from_entry,
    identity_from_cookie,
    identity_from_entry,
    identity_from_url,
    split_cookie_url,
)
from .matching import DomainSet
from .registry import CookieRegistry

__all__ = [
    # Config
    "ConfigManager",
    "ConfigError",
    "Settings",
    # Logging
    "setup_logging",
    "get_audit_logger",
    "log_cookie_removal",
    "log_sweep",
    # Models
    "Cookie",
    "CookieChange",
    "CookieEntry",
    "RemovalDetails",
    # Identity
    "cookie_url_from_entry",
    "identity_from_cookie",
    "identity_from_entry",
    "identity_from_url",
    "split_cookie_url",
    # Registry
    "DomainSet",
    "CookieRegistry",
]
