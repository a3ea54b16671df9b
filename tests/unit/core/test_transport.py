"""
Tests for the httpx transport.
"""

import io
from urllib.parse import parse_qs

import httpx
import pytest

from botwire.core import transport as transport_module
from botwire.core.transport import HttpxTransport, Transport
from botwire.exceptions import TelegramTimeoutError, TelegramTransportError

TOKEN = "123456:SECRET"


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Record backoff delays instead of sleeping."""
    delays: list[float] = []
    monkeypatch.setattr(transport_module.time, "sleep", delays.append)
    return delays


def make_transport(handler, **kwargs) -> tuple[HttpxTransport, httpx.Client]:
    """Build a transport whose client is served by ``handler``."""
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpxTransport(TOKEN, client=client, **kwargs), client


class TestRequest:
    """Tests for successful requests."""

    def test_posts_form_to_method_url(self):
        """Parameters are posted as a form body to /bot<token>/<method>."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b'{"ok":true,"result":true}')

        transport, _ = make_transport(handler)
        body = transport.request("sendMessage", {"chat_id": "5", "text": "hi there"})

        assert body == b'{"ok":true,"result":true}'
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == f"https://api.telegram.org/bot{TOKEN}/sendMessage"
        assert parse_qs(request.content.decode()) == {"chat_id": ["5"], "text": ["hi there"]}

    def test_custom_endpoint(self):
        """A self-hosted Bot API server can be used."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"{}")

        transport, _ = make_transport(handler, api_endpoint="http://localhost:8081/")
        transport.request("getMe", {})
        assert str(seen[0].url) == f"http://localhost:8081/bot{TOKEN}/getMe"

    def test_uploads_are_sent_as_multipart(self):
        """Files turn the request into multipart form data with the parameters."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b'{"ok":true,"result":true}')

        transport, _ = make_transport(handler)
        transport.request(
            "sendPhoto", {"chat_id": "5"}, files={"photo": ("cat.jpg", b"\xff\xd8jpeg")}
        )

        request = seen[0]
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'name="chat_id"' in request.content
        assert b'name="photo"; filename="cat.jpg"' in request.content
        assert b"\xff\xd8jpeg" in request.content

    def test_client_error_body_is_returned(self, sleeps):
        """4xx bodies carry Telegram's error envelope and are not retried."""
        calls = []
        envelope = b'{"ok":false,"error_code":400,"description":"Bad Request: chat not found"}'

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(400, content=envelope)

        transport, _ = make_transport(handler)
        assert transport.request("sendMessage", {"chat_id": "0", "text": "x"}) == envelope
        assert len(calls) == 1
        assert sleeps == []

    def test_satisfies_transport_protocol(self):
        """HttpxTransport can stand in wherever a Transport is expected."""
        transport, _ = make_transport(lambda request: httpx.Response(200))
        assert isinstance(transport, Transport)


class TestRetry:
    """Tests for retry and backoff."""

    def test_server_error_is_retried(self, sleeps):
        """5xx responses are retried with exponential backoff."""
        responses = [httpx.Response(502), httpx.Response(500), httpx.Response(200, content=b"{}")]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        transport, _ = make_transport(handler, base_backoff=1.0, max_backoff=30.0)
        assert transport.request("getMe", {}) == b"{}"
        assert sleeps == [1.0, 2.0]

    def test_backoff_is_capped(self, sleeps):
        """Delays never exceed max_backoff."""
        responses = [httpx.Response(503) for _ in range(3)] + [httpx.Response(200, content=b"{}")]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        transport, _ = make_transport(handler, base_backoff=2.0, max_backoff=5.0)
        transport.request("getMe", {})
        assert sleeps == [2.0, 4.0, 5.0]

    def test_rate_limit_honours_retry_after(self, sleeps):
        """429 responses wait for the Retry-After interval."""
        responses = [
            httpx.Response(429, headers={"Retry-After": "7"}),
            httpx.Response(200, content=b"{}"),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        transport, _ = make_transport(handler)
        transport.request("sendMessage", {"chat_id": "1", "text": "x"})
        assert sleeps == [7.0]

    def test_gives_up_after_max_retries(self, sleeps):
        """Persistent server errors become TelegramTransportError."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        transport, _ = make_transport(handler, max_retries=2, base_backoff=0.5)
        with pytest.raises(TelegramTransportError) as exc_info:
            transport.request("getMe", {})

        assert len(calls) == 3
        assert TOKEN not in str(exc_info.value)

    def test_other_status_errors_are_retried_as_server_errors(self, sleeps):
        """The retry helper treats every raised status error as transient."""
        request = httpx.Request("POST", "https://api.telegram.org/bot/getMe")
        outcomes = [httpx.Response(418, request=request), b"{}"]

        def flaky() -> bytes:
            outcome = outcomes.pop(0)
            if isinstance(outcome, httpx.Response):
                raise httpx.HTTPStatusError("teapot", request=request, response=outcome)
            return outcome

        assert transport_module._retry_with_backoff(flaky, base_backoff=0.5) == b"{}"
        assert sleeps == [0.5]

    def test_timeout_becomes_telegram_timeout(self, sleeps):
        """Timeouts that outlast the retries raise TelegramTimeoutError."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ReadTimeout("timed out", request=request)

        transport, _ = make_transport(handler, max_retries=1)
        with pytest.raises(TelegramTimeoutError):
            transport.request("getUpdates", {})
        assert len(calls) == 2

    def test_timeout_then_success(self, sleeps):
        """A transient timeout is retried."""
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectTimeout("slow", request=request)
            return httpx.Response(200, content=b"{}")

        transport, _ = make_transport(handler)
        assert transport.request("getMe", {}) == b"{}"
        assert len(attempts) == 2

    def test_network_error(self, sleeps):
        """Connection failures become TelegramTransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError(f"cannot reach {request.url}", request=request)

        transport, _ = make_transport(handler, max_retries=1)
        with pytest.raises(TelegramTransportError) as exc_info:
            transport.request("getMe", {})
        assert TOKEN not in str(exc_info.value)
        assert "<token>" in str(exc_info.value)


class TestLifecycle:
    """Tests for client ownership."""

    def test_borrowed_client_stays_open(self):
        """A client passed in by the caller is not closed."""
        transport, client = make_transport(lambda request: httpx.Response(200))
        with transport:
            pass
        assert not client.is_closed

    def test_own_client_is_closed(self):
        """The lazily created client is closed and dropped."""
        transport = HttpxTransport(TOKEN)
        client = transport._get_client()
        assert transport._get_client() is client
        transport.close()
        assert client.is_closed
        assert transport._client is None


class TestDownload:
    """Tests for file downloads."""

    def test_streams_file_into_destination(self):
        """The file is fetched from /file/bot<token>/<path> and written out."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"x" * 70_000)

        transport, _ = make_transport(handler)
        dest = io.BytesIO()

        assert transport.download("photos/file_1.jpg", dest) == 70_000
        assert dest.getvalue() == b"x" * 70_000
        assert seen[0].method == "GET"
        assert str(seen[0].url) == f"https://api.telegram.org/file/bot{TOKEN}/photos/file_1.jpg"

    def test_missing_file(self, sleeps):
        """Error statuses fail without retrying or writing anything."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(404, content=b"Not Found")

        transport, _ = make_transport(handler)
        dest = io.BytesIO()

        with pytest.raises(TelegramTransportError) as exc_info:
            transport.download("photos/gone.jpg", dest)

        assert "404" in str(exc_info.value)
        assert TOKEN not in str(exc_info.value)
        assert dest.getvalue() == b""
        assert len(calls) == 1

    def test_timeout(self):
        """Download timeouts raise TelegramTimeoutError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        transport, _ = make_transport(handler)

        with pytest.raises(TelegramTimeoutError):
            transport.download("photos/slow.jpg", io.BytesIO())
