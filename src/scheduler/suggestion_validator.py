"""
Validation of raw suggestion form input
"""
import logging
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from src.scheduler.suggestion_models import FieldError, SuggestionInput, ValidationOutcome

logger = logging.getLogger(__name__)


def validate_suggestion_input(raw: Mapping[str, Any]) -> ValidationOutcome:
    """
    Validate the duration/preferences fragment of the event form.

    Every violated field is reported; nothing is raised.
    """
    try:
        value = SuggestionInput.model_validate({
            "duration": raw.get("duration"),
            "preferences": raw.get("preferences"),
        })
    except PydanticValidationError as e:
        errors = [
            FieldError(field=str(err["loc"][0]) if err["loc"] else "input", message=err["msg"])
            for err in e.errors()
        ]
        logger.debug(f"Suggestion input rejected: {[fe.field for fe in errors]}")
        return ValidationOutcome(ok=False, errors=errors)

    return ValidationOutcome(ok=True, value=value)
