"""
Serialization of the event store and form fragment into model input
"""
import json
from typing import Dict, Sequence

from src.calendar.event_store import Event
from src.scheduler.suggestion_models import SuggestionInput


def serialize_events(events: Sequence[Event]) -> str:
    """JSON text of the full event list, in store order"""
    return json.dumps([event.to_dict() for event in events])


def build_model_input(fragment: SuggestionInput, events: Sequence[Event]) -> Dict[str, str]:
    """
    Build the exact placeholder values for the scheduling prompt.

    No filtering or conflict precomputation happens here; the model sees
    the whole schedule. `userPreferences` is left out only when the user
    gave none (an empty string still counts as given).
    """
    model_input = {
        "existingEvents": serialize_events(events),
        "newEventDuration": str(fragment.duration),
    }
    if fragment.preferences is not None:
        model_input["userPreferences"] = fragment.preferences
    return model_input
