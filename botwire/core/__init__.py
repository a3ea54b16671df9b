"""
Serializer, entity parser and transport adapter.

Importing this package registers the entity parsers with the decoder, so
``decode(text, Update)`` is depth-bounded no matter which module asks.
"""

from .decoder import decode, decode_record, from_tree, register_parser
from .encoder import encode, to_tree
from .params import flatten_params, param_value, params_to_json, unflatten_params
from .parser import (
    EntityKind,
    entity_kind,
    parse_callback_query,
    parse_chat,
    parse_entity,
    parse_message,
    parse_message_entity,
    parse_update,
    parse_updates,
    parse_user,
)
from .transport import HttpxTransport, Transport
from .bot import Bot, decode_result

__all__ = [
    # Bot handle and transport
    "Bot",
    "HttpxTransport",
    "Transport",
    "decode_result",
    # Serializer
    "decode",
    "decode_record",
    "encode",
    "from_tree",
    "register_parser",
    "to_tree",
    # Parameters
    "flatten_params",
    "param_value",
    "params_to_json",
    "unflatten_params",
    # Entity parser
    "EntityKind",
    "entity_kind",
    "parse_callback_query",
    "parse_chat",
    "parse_entity",
    "parse_message",
    "parse_message_entity",
    "parse_update",
    "parse_updates",
    "parse_user",
]
