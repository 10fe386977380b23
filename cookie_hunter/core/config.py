"""Configuration management for Cookie Hunter."""

import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .constants import (
    CONFIG_DIR,
    CONFIG_FILE,
    CONFIG_VERSION,
    DEFAULT_IGNORED_COOKIES,
    DEFAULT_SCOPES,
    DEFAULT_SETTINGS,
    LOGS_DIR,
)

logger = logging.getLogger(__name__)

VALID_SCOPE_DEFAULTS = frozenset({"allow", "deny"})
RULE_SEPARATOR = "|"


class ConfigError(Exception):
    """Raised when configuration is invalid."""
    pass


@dataclass
class Settings:
    """User settings consulted by the cookie engine."""

    delete_cookies: bool = True
    delete_unused_session_cookies: bool = False
    delete_unused_session_cookies_after: float = 60  # minutes

    @property
    def delete_unused_session_cookies_after_ms(self) -> float:
        """Idle threshold for session cookies, in milliseconds."""
        return self.delete_unused_session_cookies_after * 60 * 1000

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Create instance from the "settings" section of the config."""
        return cls(
            delete_cookies=data.get("delete_cookies", DEFAULT_SETTINGS["delete_cookies"]),
            delete_unused_session_cookies=data.get(
                "delete_unused_session_cookies",
                DEFAULT_SETTINGS["delete_unused_session_cookies"],
            ),
            delete_unused_session_cookies_after=data.get(
                "delete_unused_session_cookies_after",
                DEFAULT_SETTINGS["delete_unused_session_cookies_after"],
            ),
        )


class ConfigManager:
    """Manages application configuration loading, validation, and persistence."""

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or CONFIG_FILE
        self._config: dict[str, Any] = {}
        self._ensure_directories()
        self.load()

    def _ensure_directories(self) -> None:
        """Create application directories if they don't exist."""
        for directory in (CONFIG_DIR, LOGS_DIR, self.config_path.parent):
            directory.mkdir(parents=True, exist_ok=True)

    def _create_default_config(self) -> dict[str, Any]:
        """Generate default configuration."""
        return {
            "version": CONFIG_VERSION,
            "settings": DEFAULT_SETTINGS.copy(),
            "scopes": copy.deepcopy(DEFAULT_SCOPES),
            "ignored_cookies": DEFAULT_IGNORED_COOKIES.copy(),
        }

    @staticmethod
    def _is_rule_string(value: Any) -> bool:
        """Check a "left|right" rule string has content on both sides."""
        if not isinstance(value, str) or RULE_SEPARATOR not in value:
            return False
        left, _, right = value.partition(RULE_SEPARATOR)
        return bool(left.strip()) and bool(right.strip())

    def _validate_settings(self, settings: dict[str, Any]) -> list[str]:
        """Validate the settings section and return list of errors."""
        errors = []
        for key in ("delete_cookies", "delete_unused_session_cookies"):
            if key in settings and not isinstance(settings[key], bool):
                errors.append(f"Setting '{key}' must be a boolean")

        after = settings.get("delete_unused_session_cookies_after")
        if after is not None:
            if isinstance(after, bool) or not isinstance(after, (int, float)) or after <= 0:
                errors.append("Setting 'delete_unused_session_cookies_after' must be a positive number")
        return errors

    def _validate_scopes(self, scopes: Any) -> list[str]:
        """Validate the scopes section and return list of errors."""
        if not isinstance(scopes, dict):
            return ["'scopes' must be an object"]

        errors = []
        for scope_key, scope in scopes.items():
            if not isinstance(scope, dict):
                errors.append(f"Scope '{scope_key}' must be an object")
                continue
            for list_name in ("whitelist", "blacklist"):
                rules = scope.get(list_name, [])
                if not isinstance(rules, list):
                    errors.append(f"Scope '{scope_key}' {list_name} must be a list")
                    continue
                for rule in rules:
                    if not self._is_rule_string(rule):
                        errors.append(
                            f"Invalid rule '{rule}' in scope '{scope_key}': expected 'kind|domain'"
                        )
            default = scope.get("default", "allow")
            if default not in VALID_SCOPE_DEFAULTS:
                errors.append(
                    f"Scope '{scope_key}' default must be one of "
                    f"{', '.join(sorted(VALID_SCOPE_DEFAULTS))}"
                )
        return errors

    def _validate_config(self, config: dict[str, Any]) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not isinstance(config.get("version"), int):
            errors.append("Missing or invalid 'version' field")

        settings = config.get("settings")
        if not isinstance(settings, dict):
            errors.append("Missing or invalid 'settings' field")
        else:
            errors.extend(self._validate_settings(settings))

        errors.extend(self._validate_scopes(config.get("scopes", {})))

        ignored = config.get("ignored_cookies", [])
        if not isinstance(ignored, list):
            errors.append("'ignored_cookies' must be a list")
        else:
            for entry in ignored:
                if not self._is_rule_string(entry):
                    errors.append(f"Invalid ignored cookie '{entry}': expected 'domain|name'")

        return errors

    def load(self) -> None:
        """Load configuration from file, creating defaults if needed."""
        if not self.config_path.exists():
            logger.info("Config file not found, creating defaults at %s", self.config_path)
            self._config = self._create_default_config()
            self.save()
            return

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                loaded_config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file: {e}") from e

        if not isinstance(loaded_config, dict):
            raise ConfigError("Configuration validation failed: top level must be an object")

        errors = self._validate_config(loaded_config)
        if errors:
            for error in errors:
                logger.error("Config validation error: %s", error)
            raise ConfigError(f"Configuration validation failed: {'; '.join(errors)}")

        self._config = loaded_config
        logger.debug("Configuration loaded from %s", self.config_path)

    def save(self) -> None:
        """Save current configuration to file."""
        with open(self.config_path, "w", encoding="utf-8") as f:
            json.dump(self._config, f, indent=2)
        logger.debug("Configuration saved to %s", self.config_path)

    @property
    def config(self) -> dict[str, Any]:
        """Return a copy of the current configuration."""
        return copy.deepcopy(self._config)

    @property
    def settings(self) -> Settings:
        """Return user settings as a Settings snapshot."""
        return Settings.from_dict(self._config.get("settings", {}))

    @property
    def scopes(self) -> dict[str, Any]:
        """Return the scope definitions."""
        return copy.deepcopy(self._config.get("scopes", {}))

    @property
    def ignored_cookies(self) -> list[str]:
        """Return the ignored cookie entries."""
        return list(self._config.get("ignored_cookies", []))

    def update_settings(self, **kwargs: Any) -> None:
        """Update settings with provided values after validation."""
        errors = self._validate_settings(kwargs)
        if errors:
            raise ConfigError("; ".join(errors))
        self._config.setdefault("settings", {}).update(kwargs)

    def set_scopes(self, scopes: dict[str, Any]) -> None:
        """Replace the scope definitions after validation."""
        errors = self._validate_scopes(scopes)
        if errors:
            raise ConfigError("; ".join(errors))
        self._config["scopes"] = copy.deepcopy(scopes)

    def set_ignored_cookies(self, entries: list[str]) -> None:
        """Replace the ignored cookie entries after validation."""
        for entry in entries:
            if not self._is_rule_string(entry):
                raise ConfigError(f"Invalid ignored cookie '{entry}': expected 'domain|name'")
        self._config["ignored_cookies"] = list(entries)
