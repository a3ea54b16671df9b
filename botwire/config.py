"""
Configuration management for botwire.

This module provides a layered configuration system with priority:
1. CLI arguments
2. Environment variables
3. TOML config file (~/.botwire/config.toml)
4. Defaults
"""

import os
from copy import deepcopy
from pathlib import Path
from typing import Any, ClassVar

import toml

from botwire.constants import (
    BASE_BACKOFF,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_MAX_BYTES,
    DEFAULT_POOL_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_WRITE_TIMEOUT,
    MAX_BACKOFF,
    MAX_RETRIES,
    TELEGRAM_API_ENDPOINT,
)


def _to_int(value: str) -> int:
    return int(value)


def _to_float(value: str) -> float:
    return float(value)


class Config:
    """
    Configuration manager with layered priority system.

    Configuration is loaded from multiple sources with the following priority:
    1. CLI arguments (highest priority)
    2. Environment variables
    3. TOML config file
    4. Defaults (lowest priority)
    """

    DEFAULTS: ClassVar[dict[str, Any]] = {
        "telegram": {
            "bot_token": "",
            "api_endpoint": TELEGRAM_API_ENDPOINT,
        },
        "transport": {
            "connect_timeout": DEFAULT_CONNECT_TIMEOUT,
            "read_timeout": DEFAULT_READ_TIMEOUT,
            "write_timeout": DEFAULT_WRITE_TIMEOUT,
            "pool_timeout": DEFAULT_POOL_TIMEOUT,
            "max_retries": MAX_RETRIES,
            "base_backoff": BASE_BACKOFF,
            "max_backoff": MAX_BACKOFF,
        },
        "logging": {
            "level": "INFO",
            "format": "text",
            "file": "",
            "max_bytes": DEFAULT_LOG_MAX_BYTES,
            "backup_count": DEFAULT_LOG_BACKUP_COUNT,
        },
    }

    CONFIG_PATH = Path.home() / ".botwire" / "config.toml"

    # Environment variable -> config key, optionally with a converter
    ENV_MAPPINGS: ClassVar[dict[str, Any]] = {
        "TELEGRAM_BOT_TOKEN": "telegram.bot_token",
        "TELEGRAM_API_ENDPOINT": "telegram.api_endpoint",
        "BOTWIRE_MAX_RETRIES": ("transport.max_retries", _to_int),
        "BOTWIRE_READ_TIMEOUT": ("transport.read_timeout", _to_float),
        "LOG_LEVEL": "logging.level",
        "LOG_FORMAT": "logging.format",
    }

    # Path fields that get ~ and $VAR expansion
    PATH_CONFIG_FIELDS: ClassVar[list[tuple[str, ...]]] = [
        ("logging", "file"),
    ]

    def __init__(self, config_path: Path | None = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Optional path to config file (defaults to ~/.botwire/config.toml)
        """
        self.config_path = config_path or self.CONFIG_PATH
        self._config: dict[str, Any] = {}
        self._load()
        self._apply_env_overrides()
        self._expand_paths()

    def _load(self) -> None:
        """
        Load configuration from file.

        If config file doesn't exist, use defaults.
        """
        if self.config_path.exists():
            with self.config_path.open() as f:
                file_config = toml.load(f)
            self._config = self._deep_merge(deepcopy(self.DEFAULTS), file_config)
        else:
            self._config = deepcopy(self.DEFAULTS)

    def _deep_merge(
        self, base: dict[str, Any], update: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Deep merge two dictionaries.

        Args:
            base: Base dictionary
            update: Dictionary to merge into base

        Returns:
            Merged dictionary
        """
        result = deepcopy(base)

        for key, value in update.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self) -> None:
        """
        Apply environment variable overrides to configuration.

        Values that fail conversion are ignored and the file/default value
        stays in effect.
        """
        for env_var, config_mapping in self.ENV_MAPPINGS.items():
            env_value = os.environ.get(env_var)
            if env_value is None:
                continue

            if isinstance(config_mapping, tuple):
                config_key, converter = config_mapping
                try:
                    env_value = converter(env_value)
                except (ValueError, TypeError):
                    continue
            else:
                config_key = config_mapping

            self.set(config_key, env_value)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-separated key.

        Args:
            key: Dot-separated key (e.g., "telegram.bot_token")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self._config

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value by dot-separated key.

        Args:
            key: Dot-separated key (e.g., "telegram.bot_token")
            value: Value to set
        """
        keys = key.split(".")
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def delete(self, key: str) -> None:
        """
        Delete configuration value by dot-separated key.

        Args:
            key: Dot-separated key (e.g., "telegram.bot_token")
        """
        keys = key.split(".")
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                return
            config = config[k]

        if keys[-1] in config:
            del config[keys[-1]]

    def save(self) -> None:
        """
        Save configuration to file.

        Creates parent directories if they don't exist.
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with self.config_path.open("w") as f:
            toml.dump(self._config, f)

    def as_dict(self) -> dict[str, Any]:
        """Return a copy of the effective configuration."""
        return deepcopy(self._config)

    @property
    def telegram(self) -> dict[str, Any]:
        """Get Telegram configuration section."""
        return self._config.get("telegram", {})

    @property
    def transport(self) -> dict[str, Any]:
        """Get transport configuration section."""
        return self._config.get("transport", {})

    @property
    def logging(self) -> dict[str, Any]:
        """Get logging configuration section."""
        return self._config.get("logging", {})

    def _expand_paths(self) -> None:
        """
        Expand ~ and environment variables in file paths to absolute paths.

        Supports:
        - ~ (home directory)
        - $VAR or ${VAR} (environment variables)
        """
        for field_path in self.PATH_CONFIG_FIELDS:
            config_key = ".".join(field_path)

            path_value = self.get(config_key)
            if path_value and isinstance(path_value, str):
                # Expand environment variables first, then ~
                expanded = os.path.expandvars(path_value)
                expanded = str(Path(expanded).expanduser())

                if expanded != path_value:
                    self.set(config_key, expanded)


# Global config instance
_config: Config | None = None


def get_config() -> Config:
    """
    Get global configuration instance.

    Returns:
        Global Config instance
    """
    global _config  # noqa: PLW0603
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """
    Reset global config singleton for testing.

    WARNING: Do not use in production code. This is only for tests
    to ensure clean state between test runs.
    """
    global _config  # noqa: PLW0603
    _config = None
