"""
Bounded recursive parser for Telegram entities.

Turns parsed JSON trees into User, Chat, Message, MessageEntity,
CallbackQuery and Update records. Each parser is registered with the
decoder, so these types are parsed the same way whether they are requested
directly or met inside another shape (``list[Update]``, an API result, ...).

A message may carry a ``pinned_message``, which is itself a message. That
chain is followed at most ``MAX_PINNED_DEPTH`` levels below the top-level
message; anything deeper is dropped, not rejected. Messages reached through
``CallbackQuery.message`` or an ``Update`` field start a new chain at
depth 0.
"""

from enum import Enum
from typing import Any

from botwire.constants import MAX_PINNED_DEPTH
from botwire.core.decoder import decode_record, from_tree, register_parser
from botwire.core.fields import join_path, json_kind
from botwire.exceptions import SerializationError, TypeMismatchError
from botwire.models.telegram import (
    CallbackQuery,
    Chat,
    Message,
    MessageEntity,
    TelegramObject,
    Update,
    User,
)


class EntityKind(str, Enum):
    """Entities with a dedicated parser."""

    USER = "user"
    CHAT = "chat"
    MESSAGE = "message"
    MESSAGE_ENTITY = "message_entity"
    CALLBACK_QUERY = "callback_query"
    UPDATE = "update"


def _expect_object(node: Any, entity: str) -> dict[str, Any]:
    if not isinstance(node, dict):
        raise TypeMismatchError(f"{entity} must be a JSON object, got {json_kind(node)}")
    return node


@register_parser(User)
def parse_user(node: Any) -> User:
    """Parse a User; ``id``, ``is_bot`` and ``first_name`` are required."""
    return decode_record(_expect_object(node, "User"), User)


@register_parser(Chat)
def parse_chat(node: Any) -> Chat:
    """Parse a Chat; ``id`` and ``type`` are required."""
    return decode_record(_expect_object(node, "Chat"), Chat)


@register_parser(MessageEntity)
def parse_message_entity(node: Any) -> MessageEntity:
    """Parse a MessageEntity, including the mentioned User if present."""
    return decode_record(_expect_object(node, "MessageEntity"), MessageEntity)


@register_parser(Message)
def parse_message(node: Any, depth: int = 0) -> Message:
    """
    Parse a Message, following ``pinned_message`` up to the depth ceiling.

    Args:
        node: Parsed JSON object
        depth: Position in the pinned-message chain (0 for a top-level message)

    Returns:
        Message whose pinned chain has at most ``MAX_PINNED_DEPTH`` levels

    Raises:
        JSONError: If a required field is missing or has the wrong kind,
            here or in any nested entity
    """
    obj = _expect_object(node, "Message")
    pinned = None
    if obj.get("pinned_message") is not None and depth < MAX_PINNED_DEPTH:
        try:
            pinned = parse_message(obj["pinned_message"], depth + 1)
        except SerializationError as e:
            e.path = join_path("pinned_message", e.path)
            raise

    return decode_record(obj, Message, overrides={"pinned_message": pinned})


@register_parser(CallbackQuery)
def parse_callback_query(node: Any) -> CallbackQuery:
    """Parse a CallbackQuery; its ``message`` starts a fresh pinned chain."""
    return decode_record(_expect_object(node, "CallbackQuery"), CallbackQuery)


@register_parser(Update)
def parse_update(node: Any) -> Update:
    """
    Parse an Update.

    Typed payloads (messages, callback queries) go through their parsers;
    payload kinds without a model are kept as opaque JSON values.
    """
    return decode_record(_expect_object(node, "Update"), Update)


def parse_updates(node: Any) -> list[Update]:
    """Parse the array returned by ``getUpdates``."""
    return from_tree(node, list[Update])


_PARSERS_BY_KIND = {
    EntityKind.USER: parse_user,
    EntityKind.CHAT: parse_chat,
    EntityKind.MESSAGE: parse_message,
    EntityKind.MESSAGE_ENTITY: parse_message_entity,
    EntityKind.CALLBACK_QUERY: parse_callback_query,
    EntityKind.UPDATE: parse_update,
}

_KINDS_BY_MODEL = {
    User: EntityKind.USER,
    Chat: EntityKind.CHAT,
    Message: EntityKind.MESSAGE,
    MessageEntity: EntityKind.MESSAGE_ENTITY,
    CallbackQuery: EntityKind.CALLBACK_QUERY,
    Update: EntityKind.UPDATE,
}


def entity_kind(kind: EntityKind | str | type) -> EntityKind:
    """
    Normalize an entity kind given as enum member, string or model class.

    Raises:
        ValueError: If ``kind`` does not name a parsable entity
    """
    if isinstance(kind, type):
        if kind in _KINDS_BY_MODEL:
            return _KINDS_BY_MODEL[kind]
        raise ValueError(f"no entity parser for {kind.__name__}")
    return EntityKind(kind)


def parse_entity(node: Any, kind: EntityKind | str | type) -> TelegramObject:
    """
    Parse ``node`` as the given entity kind.

    Args:
        node: Parsed JSON value
        kind: ``EntityKind`` member, its value (``"update"``) or model class

    Returns:
        Parsed entity

    Raises:
        JSONError: If the node does not describe that entity
        ValueError: If ``kind`` is unknown
    """
    return _PARSERS_BY_KIND[entity_kind(kind)](node)


__all__ = [
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
