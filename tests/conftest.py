"""Shared fixtures for the scheduler tests."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from src.ai_agent.llm_client import LLMClient
from src.calendar.event_store import Event, EventStore

UTC = timezone.utc


def make_event(event_id, start, end, title=None, category="work", **kwargs):
    return Event(id=event_id, title=title or f"Event {event_id}",
                 start=start, end=end, category=category, **kwargs)


@pytest.fixture
def tz():
    return UTC


@pytest.fixture
def sample_events():
    return [
        make_event("a", datetime(2025, 6, 1, 9, 0, tzinfo=UTC),
                   datetime(2025, 6, 1, 9, 30, tzinfo=UTC), title="Standup"),
        make_event("b", datetime(2025, 6, 1, 11, 0, tzinfo=UTC),
                   datetime(2025, 6, 1, 12, 0, tzinfo=UTC), title="Design Review",
                   category="meeting", description="Review mockups"),
    ]


@pytest.fixture
def store(sample_events):
    return EventStore(sample_events)


@pytest.fixture
def mock_llm_client():
    """LLM client double answering with a valid suggestion."""
    client = MagicMock(spec=LLMClient)
    client.suggest_optimal_time.return_value = {
        "suggestedTime": "2025-06-01T14:30:00Z",
        "reasoning": "Free afternoon after the design review",
    }
    return client
