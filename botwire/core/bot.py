"""
Bot handle for the Telegram Bot API.

``Bot`` ties the pieces together: request records are flattened by
``flatten_params``, sent through a ``Transport``, and the response envelope
is decoded into the method's result type. Entity results (messages, users,
updates, ...) go through the bounded entity parser.
"""

from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, TypeVar

from pydantic import BaseModel

from botwire.config import Config, get_config
from botwire.constants import (
    BASE_BACKOFF,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_POOL_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_WRITE_TIMEOUT,
    MAX_BACKOFF,
    MAX_RETRIES,
    TELEGRAM_API_ENDPOINT,
    TELEGRAM_MAX_MESSAGE_LENGTH,
)
from botwire.core.decoder import decode, from_tree
from botwire.core.params import flatten_params
from botwire.core.transport import HttpxTransport, Transport, UploadFiles
from botwire.exceptions import (
    InvalidTokenError,
    MissingFieldError,
    TelegramAPIError,
    ValidationError,
)
from botwire.logging import get_logger, register_secret
from botwire.models.requests import (
    AnswerCallbackQueryParams,
    ChatAction,
    ChatParams,
    DeleteMessageParams,
    DeleteWebhookParams,
    EditMessageTextParams,
    ForwardMessageParams,
    GetFileParams,
    GetUpdatesParams,
    InputFile,
    LanguageCodeParams,
    ParseMode,
    SendChatActionParams,
    SendMessageParams,
    SendPhotoParams,
    SetMyCommandsParams,
    SetWebhookParams,
)
from botwire.models.telegram import (
    APIResponseWithResult,
    BotCommand,
    Chat,
    File,
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    Message,
    Update,
    User,
    WebhookInfo,
)

logger = get_logger(__name__)

EnumT = TypeVar("EnumT", bound=Enum)


def decode_result(raw: str | bytes, result_type: Any = Any, method: str = "") -> Any:
    """
    Decode a Bot API response envelope and return its typed result.

    Args:
        raw: Response body
        result_type: Annotation the ``result`` field is decoded into
        method: API method name, for error context

    Returns:
        Decoded result

    Raises:
        ParseError: If the body is not valid JSON
        TelegramAPIError: If the envelope reports ``ok: false``
        MissingFieldError: If a successful envelope has no ``result``
        JSONError: If the result does not match ``result_type``
    """
    envelope = decode(raw, APIResponseWithResult)
    if not envelope.ok:
        raise TelegramAPIError(
            envelope.description or "request failed without description",
            error_code=envelope.error_code,
            method=method,
        )
    if "result" not in envelope.model_fields_set:
        raise MissingFieldError("successful response has no result", "result")
    return from_tree(envelope.result, result_type, "result")


def _coerce_enum(value: Any, enum_cls: type[EnumT], name: str) -> EnumT | None:
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"invalid {name} {value!r}; expected one of: {allowed}") from None


def _keyboard_markup(
    keyboard: InlineKeyboardMarkup | list[list[InlineKeyboardButton]] | None,
) -> InlineKeyboardMarkup | None:
    if keyboard is None or isinstance(keyboard, InlineKeyboardMarkup):
        return keyboard
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


class Bot:
    """
    Handle for one bot token.

    Holds the token, API endpoint, transport and the bot's own ``User``
    (``self_user``), which is fetched on the first ``get_me()`` and kept for
    the handle's lifetime.
    """

    def __init__(
        self,
        token: str,
        transport: Transport | None = None,
        api_endpoint: str = TELEGRAM_API_ENDPOINT,
    ):
        """
        Initialize bot handle.

        Args:
            token: Telegram bot token from BotFather
            transport: Transport to send requests through (defaults to a
                new ``HttpxTransport`` owned by this handle)
            api_endpoint: Bot API base URL

        Raises:
            InvalidTokenError: If the token is empty
        """
        if not token:
            raise InvalidTokenError("bot token must not be empty")

        self.token = token
        register_secret(token)
        self.api_endpoint = api_endpoint.rstrip("/")
        self._owns_transport = transport is None
        self.transport: Transport = transport or HttpxTransport(
            token, api_endpoint=self.api_endpoint
        )
        self.self_user: User | None = None

    @classmethod
    def from_config(cls, config: Config | None = None) -> "Bot":
        """
        Create a bot handle from configuration.

        Args:
            config: Configuration (defaults to the global instance)

        Returns:
            Bot with an ``HttpxTransport`` built from the transport section

        Raises:
            InvalidTokenError: If no token is configured
        """
        config = config or get_config()
        token = config.get("telegram.bot_token", "")
        if not token:
            raise InvalidTokenError(
                "no bot token configured; set TELEGRAM_BOT_TOKEN or telegram.bot_token"
            )

        api_endpoint = config.get("telegram.api_endpoint", TELEGRAM_API_ENDPOINT)
        settings = config.transport
        transport = HttpxTransport(
            token,
            api_endpoint=api_endpoint,
            connect_timeout=settings.get("connect_timeout", DEFAULT_CONNECT_TIMEOUT),
            read_timeout=settings.get("read_timeout", DEFAULT_READ_TIMEOUT),
            write_timeout=settings.get("write_timeout", DEFAULT_WRITE_TIMEOUT),
            pool_timeout=settings.get("pool_timeout", DEFAULT_POOL_TIMEOUT),
            max_retries=settings.get("max_retries", MAX_RETRIES),
            base_backoff=settings.get("base_backoff", BASE_BACKOFF),
            max_backoff=settings.get("max_backoff", MAX_BACKOFF),
        )
        bot = cls(token, transport=transport, api_endpoint=api_endpoint)
        bot._owns_transport = True
        return bot

    def call(
        self,
        method: str,
        params: BaseModel | None = None,
        result_type: Any = Any,
        files: UploadFiles | None = None,
    ) -> Any:
        """
        Call a Bot API method.

        Args:
            method: Bot API method name
            params: Request parameter record (``None`` for no parameters)
            result_type: Annotation the result is decoded into
            files: Multipart uploads keyed by form field name

        Returns:
            Decoded result

        Raises:
            TelegramAPIError: If Telegram rejects the request
            TelegramTimeoutError: If the transport times out
            TelegramTransportError: If the transport fails
            SerializationError: If the parameters or the response cannot be
                converted
        """
        flat = flatten_params(params) if params is not None else {}
        logger.debug("Calling Telegram API", method=method, params=sorted(flat))

        if files:
            raw = self.transport.request(method, flat, files=files)
        else:
            raw = self.transport.request(method, flat)
        try:
            return decode_result(raw, result_type, method)
        except TelegramAPIError as e:
            logger.warning(
                "Telegram API error",
                method=method,
                error_code=e.error_code,
                description=e.description,
            )
            raise

    def get_me(self) -> User:
        """Return the bot's own user, fetching it on first use."""
        if self.self_user is None:
            self.self_user = self.call("getMe", result_type=User)
        return self.self_user

    def get_updates(
        self,
        offset: int | None = None,
        limit: int | None = None,
        timeout: int | None = None,
        allowed_updates: list[str] | None = None,
    ) -> list[Update]:
        """
        Fetch pending updates once.

        Args:
            offset: Identifier of the first update to return
            limit: Maximum number of updates (1-100)
            timeout: Long polling timeout in seconds
            allowed_updates: Update kinds to receive

        Returns:
            Parsed updates
        """
        params = GetUpdatesParams(
            offset=offset, limit=limit, timeout=timeout, allowed_updates=allowed_updates
        )
        return self.call("getUpdates", params, list[Update])

    def send_message(
        self,
        chat_id: int | str,
        text: str,
        parse_mode: ParseMode | str | None = None,
        reply_markup: InlineKeyboardMarkup | list[list[InlineKeyboardButton]] | None = None,
        disable_notification: bool | None = None,
        protect_content: bool | None = None,
        reply_to_message_id: int | None = None,
    ) -> Message:
        """
        Send a text message.

        Args:
            chat_id: Target chat ID or ``@channelusername``
            text: Message text
            parse_mode: Formatting mode (HTML, Markdown, MarkdownV2)
            reply_markup: Inline keyboard, as markup or rows of buttons
            disable_notification: Send silently
            protect_content: Protect from forwarding and saving
            reply_to_message_id: Message to reply to

        Returns:
            The sent message

        Raises:
            ValidationError: If the text is empty, or too long for a plain
                message, or the parse mode is unknown
        """
        if not text:
            raise ValidationError("message text must not be empty")
        if parse_mode is None and len(text) > TELEGRAM_MAX_MESSAGE_LENGTH:
            raise ValidationError(
                f"message text is {len(text)} characters, "
                f"limit is {TELEGRAM_MAX_MESSAGE_LENGTH}"
            )

        params = SendMessageParams(
            chat_id=chat_id,
            text=text,
            parse_mode=_coerce_enum(parse_mode, ParseMode, "parse mode"),
            disable_notification=disable_notification,
            protect_content=protect_content,
            reply_to_message_id=reply_to_message_id,
            reply_markup=_keyboard_markup(reply_markup),
        )
        return self.call("sendMessage", params, Message)

    def send_message_with_keyboard(
        self,
        chat_id: int | str,
        text: str,
        keyboard: list[list[InlineKeyboardButton]],
        parse_mode: ParseMode | str | None = None,
    ) -> Message:
        """Send a text message with an inline keyboard attached."""
        return self.send_message(chat_id, text, parse_mode=parse_mode, reply_markup=keyboard)

    def send_photo(
        self,
        chat_id: int | str,
        photo: InputFile | str,
        caption: str | None = None,
        parse_mode: ParseMode | str | None = None,
        reply_markup: InlineKeyboardMarkup | list[list[InlineKeyboardButton]] | None = None,
        disable_notification: bool | None = None,
    ) -> Message:
        """
        Send a photo.

        Args:
            chat_id: Target chat ID or ``@channelusername``
            photo: File to send; a plain string is a ``file_id`` or URL
            caption: Photo caption
            parse_mode: Formatting mode for the caption
            reply_markup: Inline keyboard, as markup or rows of buttons
            disable_notification: Send silently

        Returns:
            The sent message

        Raises:
            ValidationError: If the parse mode is unknown or the file has no source
            OSError: If a local file cannot be read
        """
        if isinstance(photo, str):
            photo = InputFile.from_file_id(photo)

        files: UploadFiles | None = None
        if photo.is_upload:
            files = {"photo": photo.read()}
        elif photo.reference() is None:
            raise ValidationError("photo needs a file_id, URL, path or content")

        params = SendPhotoParams(
            chat_id=chat_id,
            photo=None if files else photo.reference(),
            caption=caption,
            parse_mode=_coerce_enum(parse_mode, ParseMode, "parse mode"),
            disable_notification=disable_notification,
            reply_markup=_keyboard_markup(reply_markup),
        )
        return self.call("sendPhoto", params, Message, files=files)

    def answer_callback_query(
        self,
        callback_query_id: str,
        text: str | None = None,
        show_alert: bool | None = None,
        url: str | None = None,
        cache_time: int | None = None,
    ) -> bool:
        """
        Answer a callback query from an inline keyboard.

        Args:
            callback_query_id: Callback query ID
            text: Optional notification text
            show_alert: Show an alert instead of a notification
            url: URL to open
            cache_time: Seconds the client may cache the answer

        Returns:
            True on success
        """
        params = AnswerCallbackQueryParams(
            callback_query_id=callback_query_id,
            text=text,
            show_alert=show_alert,
            url=url,
            cache_time=cache_time,
        )
        return self.call("answerCallbackQuery", params, bool)

    def edit_message_text(
        self,
        chat_id: int | str,
        message_id: int,
        text: str,
        parse_mode: ParseMode | str | None = None,
        reply_markup: InlineKeyboardMarkup | list[list[InlineKeyboardButton]] | None = None,
    ) -> Message | bool:
        """
        Replace the text of a sent message.

        Returns:
            The edited message, or True when Telegram does not return it
        """
        if not text:
            raise ValidationError("message text must not be empty")

        params = EditMessageTextParams(
            chat_id=chat_id,
            message_id=message_id,
            text=text,
            parse_mode=_coerce_enum(parse_mode, ParseMode, "parse mode"),
            reply_markup=_keyboard_markup(reply_markup),
        )
        return self.call("editMessageText", params, Message | bool)

    def delete_message(self, chat_id: int | str, message_id: int) -> bool:
        """Delete a message."""
        params = DeleteMessageParams(chat_id=chat_id, message_id=message_id)
        return self.call("deleteMessage", params, bool)

    def forward_message(
        self,
        chat_id: int | str,
        from_chat_id: int | str,
        message_id: int,
        disable_notification: bool | None = None,
    ) -> Message:
        """Forward a message from one chat to another."""
        params = ForwardMessageParams(
            chat_id=chat_id,
            from_chat_id=from_chat_id,
            message_id=message_id,
            disable_notification=disable_notification,
        )
        return self.call("forwardMessage", params, Message)

    def send_chat_action(self, chat_id: int | str, action: ChatAction | str) -> bool:
        """
        Show a chat action ("typing", "upload_photo", ...) to the users.

        Raises:
            ValidationError: If the action is unknown
        """
        params = SendChatActionParams(
            chat_id=chat_id, action=_coerce_enum(action, ChatAction, "chat action")
        )
        return self.call("sendChatAction", params, bool)

    def get_chat(self, chat_id: int | str) -> Chat:
        """Get up-to-date information about a chat."""
        return self.call("getChat", ChatParams(chat_id=chat_id), Chat)

    def get_file(self, file_id: str) -> File:
        """Get download information for a file."""
        return self.call("getFile", GetFileParams(file_id=file_id), File)

    def file_url(self, file: File | str) -> str:
        """
        Download URL for a file returned by ``get_file``.

        Args:
            file: File record or its ``file_path``

        Raises:
            ValidationError: If the file has no download path
        """
        file_path = file.file_path if isinstance(file, File) else file
        if not file_path:
            raise ValidationError("file has no file_path; call get_file first")
        return f"{self.api_endpoint}/file/bot{self.token}/{file_path}"

    def download_file(self, file: File | str, dest: str | Path | BinaryIO) -> int:
        """
        Download a file's content.

        Args:
            file: File record from ``get_file``, or a ``file_id`` to look up
            dest: Path to write to, or a binary stream

        Returns:
            Number of bytes written

        Raises:
            ValidationError: If the file has no download path
            TelegramTimeoutError: If the download times out
            TelegramTransportError: If the download fails
        """
        if isinstance(file, str):
            file = self.get_file(file)
        if not file.file_path:
            raise ValidationError("file has no file_path; call get_file first")

        if isinstance(dest, (str, Path)):
            path = Path(dest).expanduser()
            with path.open("wb") as stream:
                size = self.transport.download(file.file_path, stream)
        else:
            size = self.transport.download(file.file_path, dest)

        logger.info("File downloaded", file_id=file.file_id, size=size)
        return size

    def set_webhook(
        self,
        url: str,
        max_connections: int | None = None,
        allowed_updates: list[str] | None = None,
        drop_pending_updates: bool | None = None,
        secret_token: str | None = None,
    ) -> bool:
        """
        Set webhook URL for the bot.

        Args:
            url: HTTPS URL to send updates to
            max_connections: Maximum number of concurrent connections
            allowed_updates: Update kinds to receive
            drop_pending_updates: Drop all pending updates
            secret_token: Value sent back in ``X-Telegram-Bot-Api-Secret-Token``

        Returns:
            True on success
        """
        params = SetWebhookParams(
            url=url,
            max_connections=max_connections,
            allowed_updates=allowed_updates,
            drop_pending_updates=drop_pending_updates,
            secret_token=secret_token,
        )
        return self.call("setWebhook", params, bool)

    def delete_webhook(self, drop_pending_updates: bool | None = None) -> bool:
        """Remove the webhook integration."""
        params = DeleteWebhookParams(drop_pending_updates=drop_pending_updates)
        return self.call("deleteWebhook", params, bool)

    def get_webhook_info(self) -> WebhookInfo:
        """Get current webhook status."""
        return self.call("getWebhookInfo", result_type=WebhookInfo)

    def set_my_commands(
        self, commands: list[BotCommand], language_code: str | None = None
    ) -> bool:
        """Replace the bot's command list."""
        params = SetMyCommandsParams(commands=commands, language_code=language_code)
        return self.call("setMyCommands", params, bool)

    def get_my_commands(self, language_code: str | None = None) -> list[BotCommand]:
        """Get the bot's command list."""
        params = LanguageCodeParams(language_code=language_code)
        return self.call("getMyCommands", params, list[BotCommand])

    def delete_my_commands(self, language_code: str | None = None) -> bool:
        """Delete the bot's command list."""
        params = LanguageCodeParams(language_code=language_code)
        return self.call("deleteMyCommands", params, bool)

    def close(self) -> None:
        """Close the transport if this handle created it."""
        if self._owns_transport and hasattr(self.transport, "close"):
            self.transport.close()

    def __enter__(self) -> "Bot":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
