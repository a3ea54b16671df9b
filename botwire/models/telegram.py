"""
Telegram API models for botwire.

This module contains Pydantic models for Telegram API objects
including updates, messages, callbacks, and inline keyboards.
The models only declare shape; converting them to and from JSON is done by
``botwire.core.encoder`` and ``botwire.core.decoder``.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Opaque JSON subtree: None | bool | int | float | str | list | dict
JsonValue = Any


class TelegramObject(BaseModel):
    """Base class for every Telegram record."""

    model_config = ConfigDict(populate_by_name=True)


class ChatType(str, Enum):
    """https://core.telegram.org/bots/api#chat"""

    PRIVATE = "private"
    GROUP = "group"
    SUPERGROUP = "supergroup"
    CHANNEL = "channel"


class MessageEntityType(str, Enum):
    """https://core.telegram.org/bots/api#messageentity"""

    MENTION = "mention"
    HASHTAG = "hashtag"
    CASHTAG = "cashtag"
    BOT_COMMAND = "bot_command"
    URL = "url"
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"
    SPOILER = "spoiler"
    BLOCKQUOTE = "blockquote"
    CODE = "code"
    PRE = "pre"
    TEXT_LINK = "text_link"
    TEXT_MENTION = "text_mention"
    CUSTOM_EMOJI = "custom_emoji"


class User(TelegramObject):
    """Telegram user model."""

    id: int
    is_bot: bool
    first_name: str
    last_name: str | None = None
    username: str | None = None
    language_code: str | None = None
    is_premium: bool | None = None
    added_to_attachment_menu: bool | None = None
    can_join_groups: bool | None = None
    can_read_all_group_messages: bool | None = None
    supports_inline_queries: bool | None = None
    can_connect_to_business: bool | None = None
    has_main_web_app: bool | None = None


class Chat(TelegramObject):
    """Telegram chat model."""

    id: int
    type: str = Field(..., description="Chat type: private, group, supergroup, channel")
    title: str | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class MessageEntity(TelegramObject):
    """Special entity in a message text (offset/length in UTF-16 code units)."""

    type: str
    offset: int
    length: int
    url: str | None = None
    user: User | None = None
    language: str | None = None


class PhotoSize(TelegramObject):
    """One size of a photo or thumbnail."""

    file_id: str
    file_unique_id: str
    width: int
    height: int
    file_size: int | None = None


class Message(TelegramObject):
    """Telegram message model."""

    message_id: int
    from_: User | None = Field(None, alias="from")
    date: int
    chat: Chat
    text: str | None = None
    entities: list[MessageEntity] | None = None
    photo: list[PhotoSize] | None = None
    caption: str | None = None
    pinned_message: "Message | None" = None


class CallbackQuery(TelegramObject):
    """Telegram callback query model."""

    id: str
    from_: User = Field(..., alias="from")
    message: Message | None = None
    inline_message_id: str | None = None
    chat_instance: str
    data: str | None = None
    game_short_name: str | None = None


class InlineKeyboardButton(TelegramObject):
    """Inline keyboard button model. Telegram expects exactly one action field."""

    text: str
    url: str | None = None
    callback_data: str | None = None
    switch_inline_query: str | None = None
    switch_inline_query_current_chat: str | None = None


class InlineKeyboardMarkup(TelegramObject):
    """Inline keyboard markup model."""

    inline_keyboard: list[list[InlineKeyboardButton]]


class Update(TelegramObject):
    """Telegram update model."""

    update_id: int
    message: Message | None = None
    edited_message: Message | None = None
    channel_post: Message | None = None
    edited_channel_post: Message | None = None
    business_connection: JsonValue | None = None
    business_message: Message | None = None
    edited_business_message: Message | None = None
    deleted_business_messages: JsonValue | None = None
    message_reaction: JsonValue | None = None
    message_reaction_count: JsonValue | None = None
    inline_query: JsonValue | None = None
    chosen_inline_result: JsonValue | None = None
    callback_query: CallbackQuery | None = None
    shipping_query: JsonValue | None = None
    pre_checkout_query: JsonValue | None = None
    purchased_paid_media: JsonValue | None = None
    poll: JsonValue | None = None
    poll_answer: JsonValue | None = None
    my_chat_member: JsonValue | None = None
    chat_member: JsonValue | None = None
    chat_join_request: JsonValue | None = None
    chat_boost: JsonValue | None = None
    removed_chat_boost: JsonValue | None = None

    def payload_kinds(self) -> list[str]:
        """
        List the payload fields populated on this update.

        The API sends at most one payload per update; this is not enforced
        on parse, so callers that care can check the length of this list.
        """
        return [
            name
            for name in type(self).model_fields
            if name != "update_id" and getattr(self, name) is not None
        ]


class APIResponse(TelegramObject):
    """Response envelope without a result payload."""

    ok: bool
    error_code: int | None = None
    description: str | None = None


class APIResponseWithResult(TelegramObject):
    """Response envelope with the raw result kept as a JSON tree."""

    ok: bool
    result: JsonValue | None = None
    error_code: int | None = None
    description: str | None = None


class BotCommand(TelegramObject):
    """Bot command shown in the Telegram client menu."""

    command: str
    description: str


class File(TelegramObject):
    """File ready to be downloaded via ``/file/bot<token>/<file_path>``."""

    file_id: str
    file_unique_id: str
    file_size: int | None = None
    file_path: str | None = None


class WebhookInfo(TelegramObject):
    """Current webhook status."""

    url: str
    has_custom_certificate: bool
    pending_update_count: int
    ip_address: str | None = None
    last_error_date: int | None = None
    last_error_message: str | None = None
    last_synchronization_error_date: int | None = None
    max_connections: int | None = None
    allowed_updates: list[str] | None = None
