"""
Event form state, the form controller and the edit sheet
"""
import logging
import threading
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Dict, Iterable, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from config.settings import Config
from src.calendar.event_store import Event, EventStore, Notifications, new_event_id
from src.scheduler.errors import FormValidationError, SuggestionPendingError
from src.scheduler.suggestion_applier import apply_suggestion, suggestion_input_from_form
from src.scheduler.suggestion_models import (
    DURATION_MESSAGE,
    SuggestionResponse,
    SuggestionResult,
    coerce_positive_minutes,
)

logger = logging.getLogger(__name__)

FORM_FIELDS = ("title", "description", "date", "time", "duration",
               "preferences", "category", "reminder", "notifications")


def parse_form_time(value: Any) -> Optional[time]:
    """"HH:MM" -> time, or None when unparseable"""
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), Config.FORM_TIME_FORMAT).time()
    except ValueError:
        return None


class EventForm:
    """In-progress values of the create/edit form"""

    def __init__(self, tz: tzinfo, event_id: Optional[str] = None, **values):
        self.tz = tz
        self.event_id = event_id
        self.title: str = ""
        self.description: Optional[str] = None
        self.date: Any = None
        self.time: Any = ""
        self.duration: Any = Config.DEFAULT_EVENT_DURATION
        self.preferences: Optional[str] = ""
        self.category: Any = Config.DEFAULT_CATEGORY
        self.reminder: Any = None
        self.notifications: Any = None

        self.errors: Dict[str, str] = {}
        self.suggestion: Optional[SuggestionResult] = None
        self.update(values)

    @classmethod
    def for_new_event(cls, now: datetime) -> "EventForm":
        return cls(tz=now.tzinfo, date=now.date(),
                   time=now.strftime(Config.FORM_TIME_FORMAT))

    @classmethod
    def for_event(cls, event: Event, tz: tzinfo) -> "EventForm":
        local_start = event.start.astimezone(tz)
        return cls(
            tz=tz,
            event_id=event.id,
            title=event.title,
            description=event.description,
            date=local_start.date(),
            time=local_start.strftime(Config.FORM_TIME_FORMAT),
            duration=event.duration_minutes,
            category=event.category,
            reminder=event.reminder,
            notifications=event.notifications,
            preferences="",  # preferences are not stored with the event
        )

    @property
    def is_editing(self) -> bool:
        return self.event_id is not None

    def update(self, values: Mapping[str, Any]):
        """Set form fields; date strings are parsed, bad ones kept for validation"""
        for name, value in values.items():
            if name not in FORM_FIELDS:
                continue
            if name == "date" and isinstance(value, str):
                try:
                    value = datetime.strptime(value.strip(), Config.FORM_DATE_FORMAT).date()
                except ValueError:
                    pass
            if name == "reminder" and isinstance(value, int) and not isinstance(value, bool):
                value = str(value)
            setattr(self, name, value)

    def validate_fields(self, names: Optional[Iterable[str]] = None) -> Dict[str, str]:
        """Re-validate the named fields (all when None) and return current errors"""
        for name in FORM_FIELDS if names is None else names:
            message = self._check_field(name)
            if message:
                self.errors[name] = message
            else:
                self.errors.pop(name, None)
        return dict(self.errors)

    def _check_field(self, name: str) -> Optional[str]:
        if name == "title":
            if not isinstance(self.title, str) or not self.title.strip():
                return "Title is required."
        elif name == "date":
            if self.date is None or self.date == "":
                return "Date is required."
            if not isinstance(self.date, date) or isinstance(self.date, datetime):
                return "Invalid date."
        elif name == "time":
            if not self.time:
                return "Time is required."
            if parse_form_time(self.time) is None:
                return "Invalid time."
        elif name == "duration":
            minutes = coerce_positive_minutes(self.duration)
            if minutes is None or not self._end_is_representable(minutes):
                return DURATION_MESSAGE
        elif name == "category":
            if self.category not in Config.EVENT_CATEGORIES:
                return "Invalid category."
        elif name == "reminder":
            if self.reminder not in (None, "") and self.reminder not in Config.REMINDER_OPTIONS:
                return "Invalid reminder."
        elif name == "notifications":
            if self.notifications is not None and not isinstance(self.notifications, Notifications):
                try:
                    self.notifications = Notifications.model_validate(self.notifications)
                except PydanticValidationError:
                    return "Invalid notifications."
        elif name == "description":
            if self.description is not None and not isinstance(self.description, str):
                return "Description must be text."
        return None

    def _end_is_representable(self, minutes: int) -> bool:
        """start + duration must stay inside the datetime range"""
        try:
            delta = timedelta(minutes=minutes)
            start_time = parse_form_time(self.time)
            if isinstance(self.date, date) and not isinstance(self.date, datetime) and start_time:
                datetime.combine(self.date, start_time, tzinfo=self.tz) + delta
        except OverflowError:
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        notifications = self.notifications
        if isinstance(notifications, Notifications):
            notifications = notifications.model_dump()
        return {
            "id": self.event_id,
            "title": self.title,
            "description": self.description,
            "date": self.date.isoformat() if isinstance(self.date, date) else self.date,
            "time": self.time,
            "duration": self.duration,
            "preferences": self.preferences,
            "category": self.category,
            "reminder": self.reminder,
            "notifications": notifications,
            "errors": dict(self.errors),
            "suggestion": self.suggestion.model_dump() if self.suggestion else None,
        }


class EventFormController:
    """The only writer of the event store"""

    def __init__(self, store: EventStore):
        self.store = store

    def create_or_update(self, form: EventForm) -> Event:
        """
        Turn submitted form values into an Event and write it to the store.

        Raises:
            FormValidationError: one or more fields are invalid; nothing is
                written.
        """
        errors = form.validate_fields()
        if errors:
            raise FormValidationError(errors)

        start = datetime.combine(form.date, parse_form_time(form.time), tzinfo=form.tz)
        end = start + timedelta(minutes=coerce_positive_minutes(form.duration))

        event = Event(
            id=form.event_id if form.is_editing else new_event_id(),
            title=form.title,
            description=form.description or None,
            start=start,
            end=end,
            category=form.category,
            reminder=form.reminder or None,
            notifications=form.notifications,
        )

        self.store.put(event)
        logger.info(f"✅ Event {'updated' if form.is_editing else 'created'}: '{event.title}'")
        return event


class EditSheet:
    """
    The create/edit sheet: Closed -> Open(creating | editing) -> Closed.

    Holds at most one suggestion task. Results arriving after the sheet was
    closed, or for a task that is no longer current, are dropped.
    """

    CLOSED = "closed"
    CREATING = "creating"
    EDITING = "editing"

    def __init__(self, controller: EventFormController, task_factory, tz: tzinfo):
        self.controller = controller
        self.task_factory = task_factory
        self.tz = tz
        self.state = self.CLOSED
        self.form: Optional[EventForm] = None
        self.editing_event: Optional[Event] = None
        self.task = None
        self.last_error: Optional[str] = None
        self._lock = threading.RLock()

    @property
    def is_open(self) -> bool:
        return self.state != self.CLOSED

    def open_create(self, now: Optional[datetime] = None) -> EventForm:
        with self._lock:
            self._reset()
            self.form = EventForm.for_new_event(now or datetime.now(self.tz))
            self.state = self.CREATING
            return self.form

    def open_edit(self, event: Event) -> EventForm:
        with self._lock:
            self._reset()
            self.editing_event = event
            self.form = EventForm.for_event(event, self.tz)
            self.state = self.EDITING
            return self.form

    def request_suggestion(self):
        """Start a suggestion for the current duration/preferences"""
        with self._lock:
            self._require_open()
            if self.task is None:
                self.task = self.task_factory()
            task = self.task
            if task.state == task.PENDING:
                raise SuggestionPendingError("A suggestion is already being generated")
            # cleared first: a fast task may call back before start() returns
            self.form.suggestion = None
            self.last_error = None
            task.start(suggestion_input_from_form(self.form),
                       on_done=lambda response: self._on_suggestion(task, response))
            return task

    def _on_suggestion(self, task, response: SuggestionResponse):
        with self._lock:
            if not self.is_open or task is not self.task:
                logger.info("Discarding suggestion for a closed sheet")
                return
            if response.success:
                self.form.suggestion = response.data
            else:
                self.last_error = response.error

    def apply_suggestion(self) -> EventForm:
        with self._lock:
            self._require_open()
            if self.form.suggestion is None:
                raise LookupError("No suggestion to apply")
            return apply_suggestion(self.form, self.form.suggestion)

    def update_form(self, values: Mapping[str, Any]) -> EventForm:
        with self._lock:
            self._require_open()
            self.form.update(values)
            self.form.validate_fields([name for name in values if name in FORM_FIELDS])
            return self.form

    def submit(self) -> Event:
        """Save the event and close; on field errors the sheet stays open"""
        with self._lock:
            self._require_open()
            event = self.controller.create_or_update(self.form)
            self.close()
            return event

    def cancel(self):
        with self._lock:
            self.close()

    def close(self):
        with self._lock:
            self._reset()

    def _reset(self):
        if self.task is not None:
            self.task.cancel()
        self.state = self.CLOSED
        self.form = None
        self.editing_event = None
        self.task = None
        self.last_error = None

    def _require_open(self):
        if not self.is_open:
            raise RuntimeError("Edit sheet is closed")

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "state": self.state,
                "form": self.form.to_dict() if self.form else None,
                "suggestion_state": self.task.state if self.task else "idle",
                "suggestion_error": self.last_error,
            }
