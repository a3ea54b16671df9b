"""
Decode command implementation.

Parses a saved JSON payload offline and prints the normalized entity, so a
webhook body or a logged API response can be inspected without a token.
A top-level array is parsed element by element.
"""

import sys
from pathlib import Path
from typing import Any

from botwire.constants import EXIT_ERROR, EXIT_SUCCESS, EXIT_USAGE_ERROR
from botwire.core.bot import decode_result
from botwire.core.decoder import decode
from botwire.core.encoder import encode
from botwire.core.parser import entity_kind, parse_entity
from botwire.exceptions import BotwireError
from botwire.logging import get_logger

logger = get_logger(__name__)


def decode_payload(text: str, kind: str, envelope: bool = False) -> Any:
    """
    Parse JSON text as one entity or an array of entities.

    Args:
        text: JSON text
        kind: Entity kind (``update``, ``message``, ...)
        envelope: Unwrap a Bot API response envelope first

    Returns:
        Parsed entity, or list of entities for an array
    """
    tree = decode_result(text, method="decode") if envelope else decode(text, Any)
    if isinstance(tree, list):
        return [parse_entity(node, kind) for node in tree]
    return parse_entity(tree, kind)


def main(file: Path, kind: str = "update", envelope: bool = False) -> int:
    """
    Main entry point for decode command.

    Args:
        file: Path to a JSON file
        kind: Entity kind to parse as
        envelope: The file holds a full ``{"ok": ..., "result": ...}`` response

    Returns:
        Exit code (0 for success, 1 for error, 2 for an unknown kind)
    """
    try:
        entity_kind(kind)
    except ValueError:
        print(f"Error: unknown entity kind: {kind}", file=sys.stderr)
        return EXIT_USAGE_ERROR

    try:
        text = file.read_text(encoding="utf-8")
        result = decode_payload(text, kind, envelope=envelope)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: cannot read {file}: {e}", file=sys.stderr)
        return EXIT_ERROR
    except BotwireError as e:
        logger.debug("Payload rejected", file=str(file), error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    print(encode(result))
    return EXIT_SUCCESS
