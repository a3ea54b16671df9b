"""
botwire: Telegram Bot API client core.

This package provides a generic record serializer, a depth-bounded parser
for Telegram entities, and a small transport adapter that posts flat
parameters to the Bot API and decodes its response envelopes.
"""

from botwire.core import (
    Bot,
    EntityKind,
    HttpxTransport,
    Transport,
    decode,
    encode,
    flatten_params,
    from_tree,
    parse_entity,
    parse_updates,
    to_tree,
)
from botwire.models.requests import InputFile

__version__ = "0.1.0"

__all__ = [
    "Bot",
    "EntityKind",
    "HttpxTransport",
    "InputFile",
    "Transport",
    "__version__",
    "decode",
    "encode",
    "flatten_params",
    "from_tree",
    "parse_entity",
    "parse_updates",
    "to_tree",
]
