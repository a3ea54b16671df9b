"""
Whoami command implementation.

Calls ``getMe`` with the configured token and prints the bot's user record
as JSON.
"""

import sys

from botwire.constants import EXIT_ERROR, EXIT_SUCCESS
from botwire.core.bot import Bot
from botwire.core.encoder import encode
from botwire.exceptions import BotwireError
from botwire.logging import get_logger

logger = get_logger(__name__)


def main() -> int:
    """
    Main entry point for whoami command.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        with Bot.from_config() as bot:
            user = bot.get_me()
        print(encode(user))
        return EXIT_SUCCESS
    except BotwireError as e:
        logger.error("whoami failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
