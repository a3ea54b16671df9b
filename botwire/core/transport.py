"""
HTTP transport for the Telegram Bot API.

This module provides:
- ``Transport``: the protocol the ``Bot`` handle sends requests through
- ``HttpxTransport``: the default implementation on a pooled ``httpx.Client``
  with timeouts and retry/backoff for transient failures

A transport only moves bytes. It never parses the response; Telegram puts
its error envelope in the body of 4xx responses, so those bodies are
returned to the caller unchanged.
"""

import time
from collections.abc import Callable
from typing import BinaryIO, Protocol, TypeVar, runtime_checkable

import httpx

from botwire.constants import (
    BASE_BACKOFF,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_POOL_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_WRITE_TIMEOUT,
    MAX_BACKOFF,
    MAX_RETRIES,
    TELEGRAM_API_ENDPOINT,
)
from botwire.exceptions import TelegramTimeoutError, TelegramTransportError
from botwire.logging import REDACTED, get_logger, register_secret

logger = get_logger(__name__)

T = TypeVar("T")


# Multipart uploads: form field name -> (filename, content)
UploadFiles = dict[str, tuple[str, bytes]]


@runtime_checkable
class Transport(Protocol):
    """Anything that can POST a flat parameter map to a Bot API method."""

    def request(
        self, method: str, params: dict[str, str], files: UploadFiles | None = None
    ) -> bytes:
        """Send ``params`` (and any uploads) to ``method``, return the raw body."""
        ...

    def download(self, file_path: str, dest: BinaryIO) -> int:
        """Copy a file from the Bot API file storage into ``dest``."""
        ...


def _retry_delay(response: httpx.Response, fallback: float) -> float:
    """Read ``Retry-After`` (seconds) from a rate-limited response."""
    header = response.headers.get("Retry-After")
    if header is None:
        return fallback
    try:
        return max(float(header), 0.0)
    except ValueError:
        return fallback


def _retry_with_backoff(  # noqa: PLR0912
    func: Callable[[], T],
    max_retries: int = MAX_RETRIES,
    base_backoff: float = BASE_BACKOFF,
    max_backoff: float = MAX_BACKOFF,
) -> T:
    """
    Retry function with exponential backoff for transient failures.

    Retries on:
    - httpx.TimeoutException (network timeouts)
    - httpx.NetworkError (connection errors)
    - httpx.HTTPStatusError for 429, waiting for Retry-After when given
    - any other httpx.HTTPStatusError, treated as a server error

    ``func`` must only raise HTTPStatusError for 429 and 5xx; other statuses
    carry a Telegram error envelope and are returned. Other exceptions are
    not retried.

    Args:
        func: Function to retry
        max_retries: Maximum number of retry attempts
        base_backoff: Base backoff delay in seconds
        max_backoff: Maximum backoff delay in seconds

    Returns:
        Result of func()

    Raises:
        httpx.HTTPError: The last exception if all retries fail
    """
    for attempt in range(max_retries + 1):
        retries_left = attempt < max_retries
        delay = min(base_backoff * (2**attempt), max_backoff)
        try:
            return func()
        except httpx.TimeoutException as e:
            if not retries_left:
                logger.error("Telegram API timeout, max retries exceeded", attempts=attempt + 1)
                raise
            logger.warning(
                "Telegram API timeout, retrying",
                attempt=attempt + 1,
                max_retries=max_retries,
                delay=f"{delay:.1f}s",
                error=type(e).__name__,
            )
        except httpx.NetworkError as e:
            if not retries_left:
                logger.error("Network error, max retries exceeded", attempts=attempt + 1)
                raise
            logger.warning(
                "Telegram network error, retrying",
                attempt=attempt + 1,
                max_retries=max_retries,
                delay=f"{delay:.1f}s",
                error=type(e).__name__,
            )
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code

            if status_code == 429:
                if not retries_left:
                    logger.error("Rate limit exceeded, max retries exceeded", attempts=attempt + 1)
                    raise
                delay = min(_retry_delay(e.response, delay), max_backoff)
                logger.warning(
                    "Telegram rate limit exceeded, respecting Retry-After",
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    retry_after=f"{delay:.1f}s",
                )
            else:
                if not retries_left:
                    logger.error(
                        "Server error, max retries exceeded",
                        attempts=attempt + 1,
                        status_code=status_code,
                    )
                    raise
                logger.warning(
                    "Telegram server error, retrying",
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    status_code=status_code,
                    delay=f"{delay:.1f}s",
                )

        time.sleep(delay)

    # Only reachable with a negative max_retries
    raise ValueError(f"max_retries must be >= 0, got {max_retries}")


class HttpxTransport:
    """
    Telegram transport using a persistent ``httpx.Client``.

    Parameters are sent as a form body, one field per flat parameter, to
    ``{api_endpoint}/bot{token}/{method}``. The token only ever appears in
    the request URL; it is kept out of log events and exception messages.
    """

    def __init__(
        self,
        token: str,
        api_endpoint: str = TELEGRAM_API_ENDPOINT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        write_timeout: float = DEFAULT_WRITE_TIMEOUT,
        pool_timeout: float = DEFAULT_POOL_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        base_backoff: float = BASE_BACKOFF,
        max_backoff: float = MAX_BACKOFF,
        max_connections: int = 10,
        max_keepalive_connections: int = 5,
        client: httpx.Client | None = None,
    ):
        """
        Initialize transport.

        Args:
            token: Telegram bot token from BotFather
            api_endpoint: Bot API base URL
            connect_timeout: Connection establishment timeout (seconds)
            read_timeout: Response read timeout (seconds)
            write_timeout: Request write timeout (seconds)
            pool_timeout: Connection pool acquisition timeout (seconds)
            max_retries: Retries after the first attempt for transient failures
            base_backoff: Base backoff delay in seconds
            max_backoff: Maximum backoff delay in seconds
            max_connections: Maximum number of concurrent connections
            max_keepalive_connections: Maximum number of keepalive connections
            client: Pre-built client (tests pass one with ``httpx.MockTransport``);
                the caller keeps ownership of it
        """
        self._token = token
        register_secret(token)
        self.api_endpoint = api_endpoint.rstrip("/")
        self.max_retries = max_retries
        self.base_backoff = base_backoff
        self.max_backoff = max_backoff

        self._timeout = httpx.Timeout(
            connect=connect_timeout,
            read=read_timeout,
            write=write_timeout,
            pool=pool_timeout,
        )
        self._limits = httpx.Limits(
            max_keepalive_connections=max_keepalive_connections,
            max_connections=max_connections,
        )
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.Client:
        """
        Get or create the persistent httpx client.

        Returns:
            httpx.Client instance
        """
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout, limits=self._limits)
            logger.debug(
                "Created persistent httpx client for Telegram",
                connect_timeout=self._timeout.connect,
                read_timeout=self._timeout.read,
                write_timeout=self._timeout.write,
                pool_timeout=self._timeout.pool,
            )
        return self._client

    def method_url(self, method: str) -> str:
        """Full URL of a Bot API method."""
        return f"{self.api_endpoint}/bot{self._token}/{method}"

    def _redact(self, text: str) -> str:
        if not self._token:
            return text
        return text.replace(self._token, REDACTED)

    def request(
        self, method: str, params: dict[str, str], files: UploadFiles | None = None
    ) -> bytes:
        """
        POST flat parameters to a Bot API method.

        Without ``files`` the parameters are sent as a urlencoded form; with
        ``files`` the request becomes multipart and carries the uploads too.

        Args:
            method: Bot API method name (e.g. ``sendMessage``)
            params: Flat parameter map
            files: Uploads keyed by form field name

        Returns:
            Raw response body

        Raises:
            TelegramTimeoutError: If the request times out after retries
            TelegramTransportError: For network errors or 429/5xx responses
                after retries
        """
        url = self.method_url(method)

        def _do_post() -> bytes:
            response = self._get_client().post(url, data=params, files=files)
            # Only rate limits and server errors are raised for retry
            if response.status_code == 429 or response.status_code >= 500:
                response.raise_for_status()
            return response.content

        try:
            return _retry_with_backoff(
                _do_post,
                max_retries=self.max_retries,
                base_backoff=self.base_backoff,
                max_backoff=self.max_backoff,
            )
        except httpx.TimeoutException as e:
            logger.error("Telegram API timeout after retries", method=method)
            raise TelegramTimeoutError(
                f"{method}: request timed out after {self.max_retries + 1} attempts"
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                "Telegram API request failed", method=method, error=type(e).__name__
            )
            raise TelegramTransportError(f"{method}: {self._redact(str(e))}") from e

    def file_url(self, file_path: str) -> str:
        """Download URL of a file in the Bot API file storage."""
        return f"{self.api_endpoint}/file/bot{self._token}/{file_path}"

    def download(self, file_path: str, dest: BinaryIO) -> int:
        """
        Stream a file from ``/file/bot<token>/<file_path>`` into ``dest``.

        Downloads are not retried, since part of the file may already have
        been written to ``dest``.

        Args:
            file_path: ``File.file_path`` returned by ``getFile``
            dest: Binary stream to write to

        Returns:
            Number of bytes written

        Raises:
            TelegramTimeoutError: If the download times out
            TelegramTransportError: On network errors or a non-2xx status
        """
        written = 0
        try:
            with self._get_client().stream("GET", self.file_url(file_path)) as response:
                if response.status_code >= 400:
                    raise TelegramTransportError(
                        f"download of {file_path} failed with HTTP {response.status_code}"
                    )
                for chunk in response.iter_bytes():
                    dest.write(chunk)
                    written += len(chunk)
        except httpx.TimeoutException as e:
            logger.error("Telegram file download timed out", file_path=file_path)
            raise TelegramTimeoutError(f"download of {file_path} timed out") from e
        except httpx.HTTPError as e:
            logger.error(
                "Telegram file download failed", file_path=file_path, error=type(e).__name__
            )
            raise TelegramTransportError(
                f"download of {file_path}: {self._redact(str(e))}"
            ) from e

        logger.debug("Downloaded file", file_path=file_path, size=written)
        return written

    def close(self) -> None:
        """
        Close the httpx client and release resources.

        A client passed in by the caller is left open.
        """
        if self._client is not None and self._owns_client:
            self._client.close()
            logger.debug("Closed httpx client for Telegram")
        if self._owns_client:
            self._client = None

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
