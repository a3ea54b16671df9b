"""
CLI entry point for botwire.

This module provides the main Typer CLI application with commands for
inspecting a bot and the payloads it exchanges with the Telegram Bot API.
"""

# ruff: noqa: PLC0415 (intentional lazy imports keep startup light)
import sys
from pathlib import Path

from typer import Argument, Option, Typer

from botwire.config import get_config
from botwire.constants import DEFAULT_LOG_BACKUP_COUNT, DEFAULT_LOG_MAX_BYTES
from botwire.logging import get_logger, setup_logging

# Initialize configuration
config = get_config()

# Setup logging based on configuration
log_config = config.logging
setup_logging(
    level=log_config.get("level", "INFO"),
    log_format=log_config.get("format", "text"),
    log_file=log_config.get("file") or None,
    max_bytes=log_config.get("max_bytes", DEFAULT_LOG_MAX_BYTES),
    backup_count=log_config.get("backup_count", DEFAULT_LOG_BACKUP_COUNT),
)

logger = get_logger(__name__)

app = Typer(
    name="botwire",
    help="Telegram Bot API client toolkit",
    add_completion=True,
)


@app.command()
def whoami():
    """
    Show the bot's own user record (getMe).
    """
    from botwire.commands.whoami import main as whoami_main

    sys.exit(whoami_main())


@app.command()
def send(
    chat_id: str = Argument(..., help="Chat ID or @channelusername"),
    text: str = Argument(..., help="Message text"),
    parse_mode: str | None = Option(None, help="HTML, Markdown or MarkdownV2"),
):
    """
    Send a text message.
    """
    from botwire.commands.send import main as send_main

    sys.exit(send_main(chat_id, text, parse_mode=parse_mode))


@app.command()
def updates(
    offset: int | None = None,
    limit: int | None = None,
    timeout: int | None = None,
):
    """
    Fetch pending updates once and print them as JSON lines.
    """
    from botwire.commands.updates import main as updates_main

    sys.exit(updates_main(offset=offset, limit=limit, timeout=timeout))


@app.command()
def decode(
    file: Path = Argument(..., help="JSON file to parse"),
    kind: str = Option("update", help="Entity kind: update, message, callback_query, ..."),
    envelope: bool = Option(False, help="File holds a full Bot API response"),
):
    """
    Parse a saved JSON payload offline.
    """
    from botwire.commands.decode import main as decode_main

    sys.exit(decode_main(file, kind=kind, envelope=envelope))


@app.command(name="config")
def config_command(
    key: str | None = Argument(None),
    value: str | None = Argument(None),
    delete: bool = False,
):
    """
    Configuration management.
    """
    from botwire.commands.config import main as config_main

    sys.exit(config_main(key=key, value=value, delete=delete))


if __name__ == "__main__":
    app()
