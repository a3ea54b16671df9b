"""
Request parameter records for the supported Telegram methods.

Each record is flattened by ``botwire.core.params.flatten_params`` into the
form body of one API call. Fields left as ``None`` are not sent.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel

from botwire.models.telegram import BotCommand, InlineKeyboardMarkup, TelegramObject


class ParseMode(str, Enum):
    """https://core.telegram.org/bots/api#formatting-options"""

    HTML = "HTML"
    MARKDOWN = "Markdown"
    MARKDOWN_V2 = "MarkdownV2"


class ChatAction(str, Enum):
    """https://core.telegram.org/bots/api#sendchataction"""

    TYPING = "typing"
    UPLOAD_PHOTO = "upload_photo"
    RECORD_VIDEO = "record_video"
    UPLOAD_VIDEO = "upload_video"
    RECORD_VOICE = "record_voice"
    UPLOAD_VOICE = "upload_voice"
    UPLOAD_DOCUMENT = "upload_document"
    CHOOSE_STICKER = "choose_sticker"
    FIND_LOCATION = "find_location"
    RECORD_VIDEO_NOTE = "record_video_note"
    UPLOAD_VIDEO_NOTE = "upload_video_note"


class GetUpdatesParams(TelegramObject):
    offset: int | None = None
    limit: int | None = None
    timeout: int | None = None
    allowed_updates: list[str] | None = None


class SendMessageParams(TelegramObject):
    chat_id: int | str
    text: str
    parse_mode: ParseMode | None = None
    disable_notification: bool | None = None
    protect_content: bool | None = None
    reply_to_message_id: int | None = None
    reply_markup: InlineKeyboardMarkup | None = None


class SendPhotoParams(TelegramObject):
    """``photo`` is only set for file IDs and URLs; uploads travel as multipart."""

    chat_id: int | str
    photo: str | None = None
    caption: str | None = None
    parse_mode: ParseMode | None = None
    disable_notification: bool | None = None
    protect_content: bool | None = None
    reply_to_message_id: int | None = None
    reply_markup: InlineKeyboardMarkup | None = None


class ForwardMessageParams(TelegramObject):
    chat_id: int | str
    from_chat_id: int | str
    message_id: int
    disable_notification: bool | None = None


class EditMessageTextParams(TelegramObject):
    chat_id: int | str
    message_id: int
    text: str
    parse_mode: ParseMode | None = None
    reply_markup: InlineKeyboardMarkup | None = None


class DeleteMessageParams(TelegramObject):
    chat_id: int | str
    message_id: int


class AnswerCallbackQueryParams(TelegramObject):
    callback_query_id: str
    text: str | None = None
    show_alert: bool | None = None
    url: str | None = None
    cache_time: int | None = None


class SendChatActionParams(TelegramObject):
    chat_id: int | str
    action: ChatAction


class ChatParams(TelegramObject):
    """Parameters for methods that only take a chat (``getChat``)."""

    chat_id: int | str


class GetFileParams(TelegramObject):
    file_id: str


class SetWebhookParams(TelegramObject):
    url: str
    max_connections: int | None = None
    allowed_updates: list[str] | None = None
    drop_pending_updates: bool | None = None
    secret_token: str | None = None


class DeleteWebhookParams(TelegramObject):
    drop_pending_updates: bool | None = None


class SetMyCommandsParams(TelegramObject):
    commands: list[BotCommand]
    language_code: str | None = None


class LanguageCodeParams(TelegramObject):
    """Parameters for ``getMyCommands`` and ``deleteMyCommands``."""

    language_code: str | None = None


class InputFile(BaseModel):
    """
    A file to send with a method such as ``sendPhoto``.

    Exactly one source is set. A ``file_id`` or ``url`` is sent as a plain
    parameter and Telegram fetches the file itself; ``content`` and ``path``
    are uploaded as multipart form data under ``name``.
    """

    name: str = "file"
    content: bytes | None = None
    path: Path | None = None
    file_id: str | None = None
    url: str | None = None

    @classmethod
    def from_bytes(cls, name: str, content: bytes) -> "InputFile":
        return cls(name=name, content=content)

    @classmethod
    def from_path(cls, path: str | Path) -> "InputFile":
        path = Path(path).expanduser()
        return cls(name=path.name, path=path)

    @classmethod
    def from_file_id(cls, file_id: str) -> "InputFile":
        return cls(file_id=file_id)

    @classmethod
    def from_url(cls, url: str) -> "InputFile":
        return cls(url=url)

    @property
    def is_upload(self) -> bool:
        """True when the file's bytes have to be sent with the request."""
        return self.content is not None or self.path is not None

    def reference(self) -> str | None:
        """The ``file_id`` or URL to send in place of an upload."""
        return self.file_id or self.url

    def read(self) -> tuple[str, bytes]:
        """
        Load the upload as a ``(filename, content)`` pair.

        Raises:
            OSError: If ``path`` cannot be read
        """
        if self.content is not None:
            return self.name, self.content
        if self.path is None:
            raise ValueError("InputFile has nothing to upload")
        return self.name, self.path.read_bytes()
