"""
Error types raised inside the scheduling pipeline
"""
from typing import Dict, List, Optional


class SchedulingError(Exception):
    """Base class for every scheduling pipeline failure"""


class ValidationError(SchedulingError):
    """Suggestion input failed validation before any external call"""

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__(", ".join(self.messages))


class ServiceCallError(SchedulingError):
    """The external model call failed at transport level or raised"""


class SchemaViolationError(SchedulingError):
    """The external model answered with a response of the wrong shape"""


class SuggestionPendingError(SchedulingError):
    """A suggestion is already in flight for this form"""


class FormValidationError(SchedulingError):
    """Per-field errors on the event create/edit form"""

    def __init__(self, field_errors: Dict[str, str], message: Optional[str] = None):
        self.field_errors = dict(field_errors)
        super().__init__(message or "; ".join(f"{k}: {v}" for k, v in self.field_errors.items()))
