"""
Upcoming reminders derived from the event store
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from src.calendar.event_store import Event, Notifications


@dataclass(frozen=True)
class Reminder:
    id: str
    event_title: str
    event_start: datetime
    reminder_time: datetime
    notifications: Optional[Notifications] = None

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "eventTitle": self.event_title,
            "eventStart": self.event_start.isoformat(),
            "reminderTime": self.reminder_time.isoformat(),
            "notifications": self.notifications.model_dump() if self.notifications else None,
        }


def upcoming_reminders(events: Iterable[Event], now: datetime) -> List[Reminder]:
    """Reminders that have not fired yet, soonest first"""
    reminders = []
    for event in events:
        if not event.reminder:
            continue
        reminder_time = event.start - timedelta(minutes=int(event.reminder))
        if reminder_time <= now:
            continue
        reminders.append(Reminder(
            id=f"{event.id}-reminder",
            event_title=event.title,
            event_start=event.start,
            reminder_time=reminder_time,
            notifications=event.notifications,
        ))

    return sorted(reminders, key=lambda r: r.reminder_time)
