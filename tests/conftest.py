"""
pytest fixtures and configuration for botwire tests.
"""

import json
import os
from pathlib import Path
from typing import Any

import pytest

from botwire.config import Config, reset_config
from botwire.core.bot import Bot
from botwire.logging import reset_logging

# Store original environment variables before any tests run
_ORIG_ENV = os.environ.copy()

TEST_TOKEN = "123456:TEST-token"


@pytest.fixture(autouse=True, scope="session")
def clean_test_environment() -> None:  # type: ignore[misc]
    """
    Clean environment for entire test session.

    This must run before any tests to prevent loading of user's
    actual configuration from environment variables.
    """
    env_vars_to_clear = [
        "LOG_LEVEL",
        "LOG_FORMAT",
        "TELEGRAM_BOT_TOKEN",
        "TELEGRAM_API_ENDPOINT",
        "BOTWIRE_MAX_RETRIES",
        "BOTWIRE_READ_TIMEOUT",
    ]
    for var in env_vars_to_clear:
        os.environ.pop(var, None)

    yield


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:  # type: ignore[misc]
    """
    Point the default config file at a temporary directory.

    Also resets the global config singleton and any environment variables
    added by the test, so tests don't pollute each other's state.
    """
    config_path = tmp_path / ".botwire" / "config.toml"
    monkeypatch.setattr(Config, "CONFIG_PATH", config_path)
    reset_config()

    yield config_path

    reset_config()
    pytest_vars = {"PYTEST_CURRENT_TEST", "PYTEST_XDIST_WORKER", "PYTEST_XDIST_WORKER_COUNT"}
    added_vars = (set(os.environ.keys()) - set(_ORIG_ENV.keys())) - pytest_vars
    for var in added_vars:
        os.environ.pop(var, None)


@pytest.fixture
def fresh_logging() -> None:  # type: ignore[misc]
    """Allow a test to call setup_logging with its own arguments."""
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """
    Create temporary config directory for tests.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary config directory
    """
    config_dir = tmp_path / "config"
    config_dir.mkdir(parents=True)
    return config_dir


@pytest.fixture
def test_config(test_config_dir: Path) -> Config:
    """
    Create test configuration.

    Args:
        test_config_dir: Test config directory fixture

    Returns:
        Config instance with test settings
    """
    config = Config(config_path=test_config_dir / "config.toml")
    config.set("telegram.bot_token", TEST_TOKEN)
    config.set("transport.max_retries", 0)
    return config


class FakeTransport:
    """
    Transport double that replays canned response bodies.

    Records every ``(method, params)`` pair it receives in ``calls`` and the
    multipart uploads of each call in ``uploads``.
    """

    def __init__(self):
        self.calls: list[tuple[str, dict[str, str]]] = []
        self.uploads: list[dict[str, tuple[str, bytes]]] = []
        self.stored: dict[str, bytes] = {}
        self._bodies: dict[str, bytes] = {}

    def reply(self, method: str, result: Any) -> "FakeTransport":
        """Answer ``method`` with a successful envelope around ``result``."""
        return self.raw(method, json.dumps({"ok": True, "result": result}))

    def fail(self, method: str, error_code: int, description: str) -> "FakeTransport":
        """Answer ``method`` with an error envelope."""
        return self.raw(
            method,
            json.dumps({"ok": False, "error_code": error_code, "description": description}),
        )

    def raw(self, method: str, body: str | bytes) -> "FakeTransport":
        """Answer ``method`` with an arbitrary body."""
        self._bodies[method] = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def store(self, file_path: str, content: bytes) -> "FakeTransport":
        """Serve ``content`` for downloads of ``file_path``."""
        self.stored[file_path] = content
        return self

    def request(self, method: str, params: dict[str, str], files=None) -> bytes:
        self.calls.append((method, dict(params)))
        self.uploads.append(dict(files or {}))
        if method not in self._bodies:
            raise AssertionError(f"unexpected call to {method}")
        return self._bodies[method]

    def download(self, file_path: str, dest) -> int:
        if file_path not in self.stored:
            raise AssertionError(f"unexpected download of {file_path}")
        dest.write(self.stored[file_path])
        return len(self.stored[file_path])


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Transport double with no canned responses."""
    return FakeTransport()


@pytest.fixture
def bot(fake_transport: FakeTransport) -> Bot:
    """Bot handle wired to the fake transport."""
    return Bot(TEST_TOKEN, transport=fake_transport)


@pytest.fixture
def sample_user() -> dict:
    """Sample Telegram user."""
    return {"id": 42, "is_bot": True, "first_name": "Echo", "username": "echo_bot"}


@pytest.fixture
def sample_telegram_message() -> dict:
    """
    Sample Telegram update carrying a text message.

    Returns:
        Sample update dict
    """
    return {
        "update_id": 1,
        "message": {
            "message_id": 5,
            "date": 1700000000,
            "chat": {"id": 9, "type": "private"},
            "text": "hi",
        },
    }


@pytest.fixture
def sample_telegram_callback() -> dict:
    """
    Sample Telegram update carrying a callback query.

    Returns:
        Sample update dict
    """
    return {
        "update_id": 12346,
        "callback_query": {
            "id": "callback_123",
            "from": {
                "id": 123456,
                "is_bot": False,
                "first_name": "Test",
                "username": "testuser",
            },
            "message": {
                "message_id": 1,
                "from": {
                    "id": 123456,
                    "is_bot": False,
                    "first_name": "Test",
                },
                "date": 1234567890,
                "chat": {"id": 123456, "type": "private"},
                "text": "Test message",
            },
            "chat_instance": "-7001",
            "data": "callback_data",
        },
    }


def _pinned_chain(levels: int) -> dict:
    """
    Build a message whose ``pinned_message`` chain is ``levels`` deep.

    Message ``0`` is the top level; message ``n`` is pinned in ``n - 1``.
    """
    node: dict | None = None
    for message_id in range(levels, -1, -1):
        message = {
            "message_id": message_id,
            "date": 1700000000 + message_id,
            "chat": {"id": 9, "type": "group", "title": "chain"},
        }
        if node is not None:
            message["pinned_message"] = node
        node = message
    return node


@pytest.fixture
def make_pinned_chain():
    """Factory for messages with a nested ``pinned_message`` chain."""
    return _pinned_chain
