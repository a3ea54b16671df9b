"""
Send command implementation.

Sends one text message and prints the ID of the sent message.
"""

import sys

from botwire.constants import EXIT_ERROR, EXIT_SUCCESS
from botwire.core.bot import Bot
from botwire.exceptions import BotwireError
from botwire.logging import get_logger

logger = get_logger(__name__)


def parse_chat_id(chat_id: str) -> int | str:
    """Numeric chat IDs are sent as integers, ``@channel`` names as-is."""
    try:
        return int(chat_id)
    except ValueError:
        return chat_id


def main(chat_id: str, text: str, parse_mode: str | None = None) -> int:
    """
    Main entry point for send command.

    Args:
        chat_id: Target chat ID or ``@channelusername``
        text: Message text
        parse_mode: Optional parse mode (HTML, Markdown, MarkdownV2)

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        with Bot.from_config() as bot:
            message = bot.send_message(parse_chat_id(chat_id), text, parse_mode=parse_mode)
        logger.info("Message sent", chat_id=message.chat.id, message_id=message.message_id)
        print(message.message_id)
        return EXIT_SUCCESS
    except BotwireError as e:
        logger.error("send failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
