"""
Structured logging configuration for botwire.

Events are built with structlog and handed to the standard ``logging``
module, which renders them as JSON or console text on stderr and, when
configured, in a rotating log file.

Bot tokens are part of every Bot API URL, so any string registered with
``register_secret`` is masked in every event before it is rendered. That
covers botwire's own events as well as records from other libraries
(httpx, httpcore) that pass through the same handlers.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog

from botwire.constants import DEFAULT_LOG_BACKUP_COUNT, DEFAULT_LOG_MAX_BYTES

REDACTED = "<token>"

# Flag to track if logging has been configured
_logging_configured = False

_secrets: set[str] = set()


def register_secret(value: str) -> None:
    """Mask ``value`` in every log event from now on."""
    if value:
        _secrets.add(value)


def _redact(value: Any) -> Any:
    if isinstance(value, str):
        for secret in _secrets:
            value = value.replace(secret, REDACTED)
        return value
    if isinstance(value, dict):
        return {key: _redact(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_redact(item) for item in value)
    return value


def redact_secrets(logger: Any, method_name: str, event_dict: dict) -> dict:
    """structlog processor replacing registered secrets in event values."""
    if not _secrets:
        return event_dict
    return {key: _redact(value) for key, value in event_dict.items()}


def reset_logging() -> None:
    """
    Reset logging configuration flag.

    This is primarily used in tests to allow reconfiguration between test runs.
    """
    global _logging_configured  # noqa: PLW0603
    _logging_configured = False


def _shared_processors() -> list:
    """Processors run for botwire events and foreign stdlib records alike."""
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=False,
            exception_formatter=structlog.dev.plain_traceback,
        )
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[*_shared_processors(), redact_secrets],
    )


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | None = None,
    max_bytes: int = DEFAULT_LOG_MAX_BYTES,
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
) -> None:
    """
    Configure structured logging for botwire.

    This function is idempotent - subsequent calls after the first will be ignored.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ("json" or "text")
        log_file: Path to log file (optional)
        max_bytes: Maximum size of log file before rotation
        backup_count: Number of backup files to keep
    """
    global _logging_configured  # noqa: PLW0603

    if _logging_configured:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            # After format_exc_info so rendered tracebacks are masked too
            redact_secrets,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = _formatter(log_format)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Diagnostics go to stderr so CLI output on stdout stays parseable
    if not any(
        isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
        for h in root_logger.handlers
    ):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    _logging_configured = True


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    The logger is a lazy proxy: modules create theirs at import time, often
    before ``setup_logging`` runs, and the configuration is picked up on the
    first event.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Structlog logger proxy
    """
    return structlog.get_logger(name)
