"""
Applies an AI suggestion to the in-progress event form
"""
import logging
from typing import Any, Dict

from config.settings import Config
from src.scheduler.errors import SchemaViolationError
from src.scheduler.suggestion_models import SuggestionResult

logger = logging.getLogger(__name__)


def suggestion_input_from_form(form) -> Dict[str, Any]:
    """The raw fragment of an EventForm the suggestion pipeline reads"""
    return {"duration": form.duration, "preferences": form.preferences}


def apply_suggestion(form, result: SuggestionResult):
    """
    Write the suggested date and time-of-day into the form.

    The timestamp is shown in the form's timezone. Duration and every other
    field are left alone, the held suggestion is cleared (suggestions are
    single-use) and the two overwritten fields are re-validated. Applying
    the same result twice gives the same form.

    Raises:
        SchemaViolationError: suggestedTime does not parse; the form is
            not touched.
    """
    try:
        suggested = result.suggested_datetime
    except ValueError as e:
        raise SchemaViolationError(str(e)) from e

    local = suggested.astimezone(form.tz)
    form.date = local.date()
    form.time = local.strftime(Config.FORM_TIME_FORMAT)
    form.suggestion = None
    form.validate_fields(["date", "time"])

    logger.info(f"✨ Suggestion applied: {form.date.isoformat()} {form.time}")
    return form
