"""
Tests for request parameter flattening.
"""

import json

import pytest

from botwire.core.params import flatten_params, param_value, params_to_json, unflatten_params
from botwire.exceptions import MissingFieldError, TypeMismatchError, UnsupportedTypeError
from botwire.models.requests import (
    ChatAction,
    GetUpdatesParams,
    ParseMode,
    SendChatActionParams,
    SendMessageParams,
    SetMyCommandsParams,
)
from botwire.models.telegram import BotCommand, InlineKeyboardButton, InlineKeyboardMarkup


class TestFlattenParams:
    """Tests for flatten_params."""

    def test_scalars_are_stringified(self):
        """Integers, strings and booleans become their wire text."""
        params = SendMessageParams(chat_id=5, text="hi", disable_notification=True)
        assert flatten_params(params) == {
            "chat_id": "5",
            "text": "hi",
            "disable_notification": "true",
        }

    def test_absent_optionals_are_omitted(self):
        """None fields produce no key at all."""
        assert flatten_params(GetUpdatesParams()) == {}
        assert flatten_params(GetUpdatesParams(offset=10)) == {"offset": "10"}

    def test_false_is_sent(self):
        """False is a value, not an absent field."""
        params = SendMessageParams(chat_id=5, text="hi", protect_content=False)
        assert flatten_params(params)["protect_content"] == "false"

    def test_enum_is_sent_as_tag(self):
        """Enum fields are sent as their tag."""
        params = SendMessageParams(chat_id="@news", text="*hi*", parse_mode=ParseMode.MARKDOWN_V2)
        assert flatten_params(params) == {
            "chat_id": "@news",
            "text": "*hi*",
            "parse_mode": "MarkdownV2",
        }

    def test_keyboard_is_json_encoded(self):
        """Nested records travel as one JSON-encoded value."""
        params = SendMessageParams(
            chat_id=1,
            text="choose",
            reply_markup=InlineKeyboardMarkup(
                inline_keyboard=[[InlineKeyboardButton(text="Yes", callback_data="y")]]
            ),
        )
        flat = flatten_params(params)
        assert flat["reply_markup"] == '{"inline_keyboard":[[{"text":"Yes","callback_data":"y"}]]}'

    def test_lists_are_json_encoded(self):
        """Sequences travel as JSON arrays."""
        params = SetMyCommandsParams(commands=[BotCommand(command="start", description="Start")])
        assert flatten_params(params) == {
            "commands": '[{"command":"start","description":"Start"}]'
        }
        updates = GetUpdatesParams(allowed_updates=["message", "callback_query"])
        assert flatten_params(updates) == {"allowed_updates": '["message","callback_query"]'}

    def test_non_record_is_rejected(self):
        """Only records can be flattened."""
        with pytest.raises(UnsupportedTypeError):
            flatten_params({"chat_id": 1})

    def test_text_is_not_escaped(self):
        """Plain string parameters are sent verbatim."""
        params = SendMessageParams(chat_id=1, text='a "quoted"\nline')
        assert flatten_params(params)["text"] == 'a "quoted"\nline'


class TestParamValue:
    """Tests for single parameter values."""

    def test_float(self):
        """Floats are written in decimal."""
        assert param_value(1.5) == "1.5"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(1e20, "100000000000000000000"), (1e-7, "0.0000001"), (-2.5e-3, "-0.0025")],
    )
    def test_float_without_exponent(self, value: float, expected: str):
        """Very large and very small floats are still written in plain decimal."""
        assert param_value(value) == expected

    def test_non_finite_float(self):
        """Non-finite floats cannot be sent."""
        with pytest.raises(UnsupportedTypeError) as exc_info:
            param_value(float("nan"), "ratio")
        assert exc_info.value.path == "ratio"

    def test_unsupported_value(self):
        """Values without a wire form are rejected."""
        with pytest.raises(UnsupportedTypeError):
            param_value(object(), "thing")


class TestParamsToJson:
    """Tests for params_to_json."""

    def test_renders_object_of_strings(self):
        """Every value in the rendered object is a string."""
        flat = flatten_params(SendMessageParams(chat_id=5, text="hi", disable_notification=True))
        rendered = params_to_json(flat)
        assert json.loads(rendered) == {"chat_id": "5", "text": "hi", "disable_notification": "true"}
        assert rendered == '{"chat_id":"5","text":"hi","disable_notification":"true"}'


class TestUnflattenParams:
    """Tests for unflatten_params."""

    def test_round_trip(self):
        """Flattened records read back into equal records."""
        params = SendMessageParams(
            chat_id=-100500,
            text="choose",
            parse_mode=ParseMode.HTML,
            disable_notification=False,
            reply_markup=InlineKeyboardMarkup(
                inline_keyboard=[[InlineKeyboardButton(text="Yes", callback_data="y")]]
            ),
        )
        assert unflatten_params(flatten_params(params), SendMessageParams) == params

    def test_channel_username_stays_string(self):
        """chat_id falls back to str when it is not numeric."""
        params = unflatten_params({"chat_id": "@news", "action": "typing"}, SendChatActionParams)
        assert params.chat_id == "@news"
        assert params.action is ChatAction.TYPING

    def test_missing_required_parameter(self):
        """Required parameters must be present."""
        with pytest.raises(MissingFieldError) as exc_info:
            unflatten_params({"chat_id": "1"}, SendMessageParams)
        assert exc_info.value.path == "text"

    def test_bad_boolean(self):
        """Booleans are only "true" or "false"."""
        with pytest.raises(TypeMismatchError):
            unflatten_params(
                {"chat_id": "1", "text": "x", "disable_notification": "yes"},
                SendMessageParams,
            )

    def test_bad_json_value(self):
        """JSON-encoded parameters must hold valid JSON."""
        with pytest.raises(TypeMismatchError) as exc_info:
            unflatten_params({"chat_id": "1", "text": "x", "reply_markup": "{oops"}, SendMessageParams)
        assert exc_info.value.path == "reply_markup"
