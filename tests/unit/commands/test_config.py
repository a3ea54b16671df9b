"""
Tests for config command.
"""

from unittest.mock import MagicMock, patch

import toml

from botwire.commands.config import (
    delete_value,
    get_value,
    main,
    mask_secret,
    set_value,
    show_config,
)


def test_get_value(isolated_config):
    """Test getting configuration value."""
    assert get_value("transport.max_retries") == "3"
    assert get_value("transport.missing") is None


def test_get_value_masks_token(monkeypatch):
    """The bot token is shown with its secret half hidden."""
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123456:ABC-secret")

    assert get_value("telegram.bot_token") == "123456:****"


def test_mask_secret():
    """Only the bot ID survives masking."""
    assert mask_secret("123456:ABC") == "123456:****"
    assert mask_secret("no-colon") == "****"
    assert mask_secret("") == ""


def test_set_value() -> None:
    """Test setting configuration value."""
    with patch("botwire.commands.config.Config") as mock_config_class:
        mock_config = MagicMock()
        mock_config_class.return_value = mock_config

        set_value("test.key", "test_value")

        mock_config_class.assert_called_once()
        mock_config.set.assert_called_once_with("test.key", "test_value")
        mock_config.save.assert_called_once()


def test_delete_value() -> None:
    """Test deleting configuration value."""
    with patch("botwire.commands.config.Config") as mock_config_class:
        mock_config = MagicMock()
        mock_config_class.return_value = mock_config

        delete_value("test.key")

        mock_config_class.assert_called_once()
        mock_config.delete.assert_called_once_with("test.key")
        mock_config.save.assert_called_once()


def test_show_config_masks_token(monkeypatch):
    """The rendered TOML never contains the full token."""
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123456:ABC-secret")

    rendered = toml.loads(show_config())

    assert rendered["telegram"]["bot_token"] == "123456:****"
    assert rendered["logging"]["level"] == "INFO"


def test_main_exit_codes(isolated_config, capsys):
    """main maps outcomes to exit codes."""
    assert main("logging.level", "DEBUG") == 0
    assert toml.load(isolated_config)["logging"]["level"] == "DEBUG"
    assert main("logging.level") == 0
    assert capsys.readouterr().out.strip().endswith("DEBUG")

    assert main("absent.key") == 1
    assert main("logging.level", "x", delete=True) == 2
    assert main(None, "x") == 2
