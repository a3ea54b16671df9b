"""
Config command implementation.

This module implements configuration management commands:
- Show the effective configuration
- Get configuration values
- Set configuration values
- Delete configuration values
"""

import sys

import toml

from botwire.config import Config
from botwire.constants import EXIT_ERROR, EXIT_SUCCESS, EXIT_USAGE_ERROR

# Keys whose values are never printed in full
SECRET_KEYS = {"telegram.bot_token"}


def mask_secret(value: str) -> str:
    """Keep the bot ID part of a token visible, hide the secret part."""
    if not value:
        return value
    bot_id, sep, _ = value.partition(":")
    return f"{bot_id}{sep}****" if sep else "****"


def get_value(key: str) -> str | None:
    """
    Get configuration value by dot-separated key.

    Args:
        key: Dot-separated key (e.g., "telegram.bot_token")

    Returns:
        Configuration value as string, or None if the key is not set
    """
    config = Config()
    value = config.get(key)
    if value is None:
        return None
    if key in SECRET_KEYS:
        return mask_secret(str(value))
    return str(value)


def set_value(key: str, value: str) -> None:
    """
    Set configuration value by dot-separated key.

    Args:
        key: Dot-separated key (e.g., "telegram.bot_token")
        value: Value to set
    """
    config = Config()
    config.set(key, value)
    config.save()
    shown = mask_secret(value) if key in SECRET_KEYS else value
    print(f"Set {key} = {shown}")


def delete_value(key: str) -> None:
    """
    Delete configuration value by dot-separated key.

    Args:
        key: Dot-separated key (e.g., "telegram.bot_token")
    """
    config = Config()
    config.delete(key)
    config.save()
    print(f"Deleted {key}")


def show_config() -> str:
    """Render the effective configuration as TOML, secrets masked."""
    config = Config()
    data = config.as_dict()
    for key in SECRET_KEYS:
        section, _, name = key.partition(".")
        if data.get(section, {}).get(name):
            data[section][name] = mask_secret(data[section][name])
    return toml.dumps(data)


def main(key: str | None = None, value: str | None = None, delete: bool = False) -> int:
    """
    Main entry point for config command.

    Args:
        key: Configuration key
        value: Configuration value to set
        delete: Delete the configuration key

    Returns:
        Exit code (0 for success, 1 for error, 2 for bad arguments)
    """
    if delete and value is not None:
        print("Error: --delete does not take a value", file=sys.stderr)
        return EXIT_USAGE_ERROR
    if (delete or value is not None) and not key:
        print("Error: a key is required", file=sys.stderr)
        return EXIT_USAGE_ERROR

    try:
        if key and value is not None:
            set_value(key, value)
        elif key and delete:
            delete_value(key)
        elif key:
            result = get_value(key)
            if result is None:
                print(f"Key not found: {key}", file=sys.stderr)
                return EXIT_ERROR
            print(result)
        else:
            print(show_config(), end="")
        return EXIT_SUCCESS
    except (OSError, toml.TomlDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
