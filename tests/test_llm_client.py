"""Tests for the OpenAI-compatible LLM client and the mock backend."""

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from src.ai_agent.llm_client import LLMClient, create_llm_client
from src.ai_agent.mock_llm_client import MockLLMClient
from src.scheduler.errors import SchemaViolationError, ServiceCallError
from src.scheduler.suggestion_models import parse_suggested_time

MODEL_INPUT = {
    "existingEvents": '[{"id": "a", "title": "Standup"}]',
    "newEventDuration": "45",
    "userPreferences": "mornings",
}


def chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def openai_client():
    return MagicMock()


@pytest.fixture
def llm(openai_client):
    return LLMClient(model_name="test-model", client=openai_client)


def test_prompt_contains_the_model_input(llm, openai_client):
    openai_client.chat.completions.create.return_value = chat_response(
        '{"suggestedTime": "2025-06-01T14:30:00Z", "reasoning": "free"}')

    result = llm.suggest_optimal_time(MODEL_INPUT)

    assert result == {"suggestedTime": "2025-06-01T14:30:00Z", "reasoning": "free"}
    kwargs = openai_client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["response_format"] == {"type": "json_object"}
    prompt = kwargs["messages"][0]["content"]
    assert "New Event Duration: 45 minutes" in prompt
    assert "User Preferences: mornings" in prompt
    assert MODEL_INPUT["existingEvents"] in prompt


def test_missing_preferences_render_empty(llm, openai_client):
    openai_client.chat.completions.create.return_value = chat_response('{"a": 1}')

    llm.suggest_optimal_time({"existingEvents": "[]", "newEventDuration": "30"})

    prompt = openai_client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
    assert "User Preferences: \n" in prompt


def test_json_wrapped_in_prose_is_extracted(llm, openai_client):
    openai_client.chat.completions.create.return_value = chat_response(
        'Sure! Here it is:\n{"suggestedTime": "2025-06-01T14:30:00Z", "reasoning": "ok"}\nThanks')

    assert llm.suggest_optimal_time(MODEL_INPUT)["reasoning"] == "ok"


def test_response_without_json_is_a_schema_violation(llm, openai_client):
    openai_client.chat.completions.create.return_value = chat_response("I cannot help with that.")

    with pytest.raises(SchemaViolationError):
        llm.suggest_optimal_time(MODEL_INPUT)


@pytest.mark.parametrize("response", [
    SimpleNamespace(choices=[]),
    chat_response(""),
    chat_response(None),
])
def test_empty_responses_are_schema_violations(llm, openai_client, response):
    openai_client.chat.completions.create.return_value = response

    with pytest.raises(SchemaViolationError):
        llm.suggest_optimal_time(MODEL_INPUT)


def test_transport_errors_become_service_call_errors(llm, openai_client):
    openai_client.chat.completions.create.side_effect = ConnectionError("refused")

    with pytest.raises(ServiceCallError):
        llm.suggest_optimal_time(MODEL_INPUT)


def test_mock_client_suggests_business_day_morning():
    result = MockLLMClient().suggest_optimal_time({"newEventDuration": "30"})

    suggested = parse_suggested_time(result["suggestedTime"])
    assert suggested.weekday() < 5
    assert (suggested.hour, suggested.minute) == (10, 0)
    assert suggested > datetime.now(suggested.tzinfo)
    assert result["reasoning"]


def test_factory_selects_mock_backend():
    with patch("src.ai_agent.llm_client.Config.LLM_PROVIDER", "mock"):
        assert isinstance(create_llm_client(), MockLLMClient)


def test_factory_selects_openai_backend():
    with patch("src.ai_agent.llm_client.Config.LLM_PROVIDER", "openai"), \
            patch("src.ai_agent.llm_client.OpenAI") as mock_openai:
        client = create_llm_client("other-model")

    assert isinstance(client, LLMClient)
    assert client.model_name == "other-model"
    assert mock_openai.call_args.kwargs["max_retries"] == 0
