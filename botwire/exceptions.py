"""
Custom exceptions for botwire.

This module provides the exception hierarchy shared by the serializer,
the entity parser and the Telegram transport layer.
"""


class BotwireError(Exception):
    """Base exception for botwire errors."""

    pass


class SerializationError(BotwireError):
    """
    Base exception for encode/decode failures.

    Carries the dotted path of the field where the failure happened so that
    a caller can tell ``message.chat.id`` apart from ``message.from.id``.
    """

    def __init__(self, message: str, path: str = ""):
        """
        Initialize serialization error.

        Args:
            message: Human readable description
            path: Dotted field path (empty for the root value)
        """
        self.message = message
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        """Return message prefixed with the field path when known."""
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class ParseError(SerializationError):
    """Raised when JSON text is syntactically malformed."""

    pass


class UnsupportedTypeError(SerializationError):
    """Raised when a value or target type cannot be walked by the serializer."""

    pass


class JSONError(SerializationError):
    """Raised when a JSON tree does not describe the requested entity."""

    pass


class TypeMismatchError(JSONError):
    """Raised when a JSON value has the wrong kind for its target field."""

    pass


class MissingFieldError(JSONError):
    """Raised when a required field is absent from a JSON object."""

    pass


class TelegramError(BotwireError):
    """Base exception for Telegram API errors."""

    pass


class InvalidTokenError(TelegramError):
    """Raised when a bot handle is created without a token."""

    pass


class TelegramTimeoutError(TelegramError):
    """Raised when Telegram API request times out."""

    pass


class TelegramTransportError(TelegramError):
    """Raised when the transport gives up on network or HTTP failures."""

    pass


class TelegramAPIError(TelegramError):
    """Raised when Telegram API returns an error response."""

    def __init__(self, description: str, error_code: int | None = None, method: str = ""):
        """
        Initialize API error.

        Args:
            description: Description from the response envelope
            error_code: Error code from the response envelope
            method: API method that failed
        """
        self.description = description
        self.error_code = error_code
        self.method = method
        super().__init__(description)

    def __str__(self) -> str:
        """Return description with code and method context."""
        prefix = f"{self.method}: " if self.method else ""
        if self.error_code is not None:
            return f"{prefix}[{self.error_code}] {self.description}"
        return f"{prefix}{self.description}"


class ValidationError(BotwireError):
    """Raised when request arguments are rejected before anything is sent."""

    pass
