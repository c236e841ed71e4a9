"""Tests for configuration helpers."""

from datetime import timedelta, timezone

import pytest

from config.settings import Config


@pytest.mark.parametrize("offset, expected", [
    ("UTC", timezone.utc),
    ("Z", timezone.utc),
    ("+00:00", timezone(timedelta(0))),
    ("+05:30", timezone(timedelta(hours=5, minutes=30))),
    ("-0400", timezone(timedelta(hours=-4))),
])
def test_get_timezone(offset, expected):
    assert Config.get_timezone(offset) == expected


@pytest.mark.parametrize("offset", ["Europe/Paris", "5", "+5:00"])
def test_get_timezone_rejects_names_and_bad_offsets(offset):
    with pytest.raises(ValueError):
        Config.get_timezone(offset)


def test_model_config_override():
    config = Config.get_model_config("other-model")

    assert config["model"] == "other-model"
    assert config["provider"] == Config.LLM_PROVIDER


def test_model_config_default():
    assert Config.get_model_config()["model"] == Config.DEFAULT_MODEL


def test_prompt_placeholders_render():
    prompt = Config.SMART_SCHEDULING_PROMPT.format(
        existingEvents="[]", newEventDuration="30", userPreferences="none")

    assert '{"suggestedTime"' in prompt
    assert "New Event Duration: 30 minutes" in prompt
