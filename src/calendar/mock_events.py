"""
Mock events used to seed the in-memory store
"""
import logging
from datetime import datetime, timedelta
from typing import List

from src.calendar.event_store import Event, Notifications

logger = logging.getLogger(__name__)


def create_mock_events(now: datetime) -> List[Event]:
    """Create a sample schedule around `now` (an aware datetime)"""
    today = now.replace(second=0, microsecond=0)

    def at(hours: int, minutes: int = 0) -> datetime:
        return today.replace(hour=hours, minute=minutes)

    events = [
        Event(id="1", title="Team Standup",
              description="Daily sync with the development team.",
              start=at(9), end=at(9, 15), category="work"),
        Event(id="2", title="Design Review",
              description="Review the new dashboard mockups.",
              start=at(11), end=at(12, 30), category="meeting"),
        Event(id="3", title="Focus Block: Code",
              description="Work on the AI integration feature.",
              start=at(14), end=at(16), category="focus-time"),
        Event(id="4", title="Dentist Appointment",
              start=today + timedelta(days=2, hours=2),
              end=today + timedelta(days=2, hours=3),
              category="personal", reminder="60",
              notifications=Notifications(email=True, push=True)),
        Event(id="5", title="Project Kickoff",
              description="Kickoff meeting for the Q3 project.",
              start=today + timedelta(days=1, hours=5),
              end=today + timedelta(days=1, hours=6),
              category="work", reminder="15"),
        Event(id="6", title="Weekly Report",
              description="Prepare and send the weekly progress report.",
              start=today - timedelta(days=3, hours=4),
              end=today - timedelta(days=3, hours=2, minutes=30),
              category="work"),
        Event(id="7", title="Lunch with Sarah",
              start=today + timedelta(days=4, hours=-2),
              end=today + timedelta(days=4, hours=-1),
              category="personal", reminder="30"),
    ]

    logger.info(f"📋 MOCK: Seeded {len(events)} events around {today.date().isoformat()}")
    return events
