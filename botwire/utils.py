"""
Helpers for working with parsed messages.

Telegram measures entity offsets and lengths in UTF-16 code units, so a
plain ``str`` slice is off by one for every astral character (most emoji)
before the entity.
"""

from enum import Enum

from botwire.models.telegram import Message, MessageEntity


def entity_text(text: str, entity: MessageEntity) -> str:
    """
    Return the part of ``text`` covered by ``entity``.

    Args:
        text: Message text
        entity: Entity with UTF-16 ``offset`` and ``length``

    Returns:
        Covered substring
    """
    encoded = text.encode("utf-16-le")
    start = entity.offset * 2
    end = start + entity.length * 2
    return encoded[start:end].decode("utf-16-le", errors="replace")


def entities_of_type(message: Message | None, kind: str | Enum) -> tuple[str, ...]:
    """
    Texts of all entities of one type in a message.

    Args:
        message: Parsed message (``None`` gives an empty result)
        kind: Entity type tag, e.g. ``"bot_command"`` or a ``MessageEntityType``

    Returns:
        Entity texts in message order
    """
    if message is None or not message.text or not message.entities:
        return ()
    tag = kind.value if isinstance(kind, Enum) else kind
    return tuple(
        entity_text(message.text, entity)
        for entity in message.entities
        if entity.type == tag
    )
