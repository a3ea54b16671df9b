"""
Constants for botwire.

This module defines named constants shared by the serializer, the parser
and the transport layer.
"""

# Telegram
TELEGRAM_API_ENDPOINT = "https://api.telegram.org"
TELEGRAM_MAX_MESSAGE_LENGTH = 4096

# Parser
MAX_PINNED_DEPTH = 3  # nested pinned_message levels kept below a top-level message

# Timeouts (in seconds)
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 30.0
DEFAULT_WRITE_TIMEOUT = 10.0
DEFAULT_POOL_TIMEOUT = 5.0

# Retry settings for transient failures
MAX_RETRIES = 3
BASE_BACKOFF = 1.0
MAX_BACKOFF = 30.0

# Polling
DEFAULT_UPDATES_LIMIT = 100
DEFAULT_UPDATES_TIMEOUT = 0

# Logging
DEFAULT_LOG_MAX_BYTES = 10485760  # 10MB
DEFAULT_LOG_BACKUP_COUNT = 5

# Exit Codes (for CLI commands)
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_USAGE_ERROR = 2

__all__ = [
    "BASE_BACKOFF",
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_LOG_BACKUP_COUNT",
    "DEFAULT_LOG_MAX_BYTES",
    "DEFAULT_POOL_TIMEOUT",
    "DEFAULT_READ_TIMEOUT",
    "DEFAULT_UPDATES_LIMIT",
    "DEFAULT_UPDATES_TIMEOUT",
    "DEFAULT_WRITE_TIMEOUT",
    "EXIT_ERROR",
    "EXIT_SUCCESS",
    "EXIT_USAGE_ERROR",
    "MAX_BACKOFF",
    "MAX_PINNED_DEPTH",
    "MAX_RETRIES",
    "TELEGRAM_API_ENDPOINT",
    "TELEGRAM_MAX_MESSAGE_LENGTH",
]
