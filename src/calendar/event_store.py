"""
In-memory event store for the Smart Event Scheduler
"""
import logging
import threading
import uuid
from datetime import date, datetime, tzinfo
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

Category = Literal["personal", "work", "focus-time", "meeting"]
ReminderOption = Literal["5", "15", "30", "60", "1440"]


def new_event_id() -> str:
    return str(uuid.uuid4())


class Notifications(BaseModel):
    """Notification channels configured for an event"""

    model_config = ConfigDict(frozen=True)

    email: bool = False
    sms: bool = False
    push: bool = False


class Event(BaseModel):
    """A titled, timed, categorized calendar entry"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_event_id, min_length=1)
    title: str = Field(min_length=1)
    description: Optional[str] = None
    start: datetime
    end: datetime
    category: Category
    reminder: Optional[ReminderOption] = None
    notifications: Optional[Notifications] = None

    @model_validator(mode="after")
    def _end_after_start(self) -> "Event":
        if self.end <= self.start:
            raise ValueError("Event end must be after its start")
        return self

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def to_dict(self) -> Dict:
        """Convert to dictionary format for JSON serialization"""
        data = {
            "id": self.id,
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "category": self.category,
        }
        if self.description is not None:
            data["description"] = self.description
        if self.reminder is not None:
            data["reminder"] = self.reminder
        if self.notifications is not None:
            data["notifications"] = self.notifications.model_dump()
        return data


class EventStore:
    """
    Owns the canonical, start-ordered list of events.

    Readers get copies of the list; `put` is the only mutation and swaps the
    whole list in one step.
    """

    def __init__(self, events: Optional[List[Event]] = None):
        self._lock = threading.Lock()
        self._events: List[Event] = sorted(events or [], key=lambda e: e.start)

    def list(self) -> List[Event]:
        """Snapshot of all events, ascending by start"""
        with self._lock:
            return list(self._events)

    def get(self, event_id: str) -> Optional[Event]:
        with self._lock:
            for event in self._events:
                if event.id == event_id:
                    return event
        return None

    def put(self, event: Event) -> Event:
        """Replace the event with the same id in place, or append it"""
        with self._lock:
            events = list(self._events)
            for i, existing in enumerate(events):
                if existing.id == event.id:
                    events[i] = event
                    action = "Updated"
                    break
            else:
                events.append(event)
                action = "Added"

            events.sort(key=lambda e: e.start)
            self._events = events

        logger.info(f"📅 {action} event {event.id} '{event.title}' at {event.start.isoformat()}")
        return event

    def events_on(self, day: date, tz: tzinfo) -> List[Event]:
        """Events whose start falls on the given calendar day in tz"""
        return [e for e in self.list() if e.start.astimezone(tz).date() == day]

    def past(self, now: datetime) -> List[Event]:
        """Events that ended before now, most recent first"""
        return sorted((e for e in self.list() if e.end <= now),
                      key=lambda e: e.start, reverse=True)

    def future(self, now: datetime) -> List[Event]:
        """Events starting after now, soonest first"""
        return [e for e in self.list() if e.start > now]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
