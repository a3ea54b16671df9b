"""
Updates command implementation.

Fetches pending updates once with ``getUpdates`` and prints each update as
one line of JSON. There is no polling loop; pass ``--offset`` with the last
``update_id`` + 1 to acknowledge what was printed.
"""

import sys

from botwire.constants import EXIT_ERROR, EXIT_SUCCESS
from botwire.core.bot import Bot
from botwire.core.encoder import encode
from botwire.exceptions import BotwireError
from botwire.logging import get_logger

logger = get_logger(__name__)


def main(offset: int | None = None, limit: int | None = None, timeout: int | None = None) -> int:
    """
    Main entry point for updates command.

    Args:
        offset: Identifier of the first update to return
        limit: Maximum number of updates
        timeout: Long polling timeout in seconds

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        with Bot.from_config() as bot:
            updates = bot.get_updates(offset=offset, limit=limit, timeout=timeout)
    except BotwireError as e:
        logger.error("getUpdates failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    logger.debug("Fetched updates", count=len(updates))
    for update in updates:
        print(encode(update))
    return EXIT_SUCCESS
