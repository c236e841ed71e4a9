"""
Suggestion Service - validate, serialize, call the model, check the answer
"""
import logging
import time
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from src.calendar.event_store import EventStore
from src.scheduler.errors import SchemaViolationError, ServiceCallError, ValidationError
from src.scheduler.suggestion_models import (
    GENERIC_FAILURE_MESSAGE,
    SuggestionResponse,
    SuggestionResult,
)
from src.scheduler.suggestion_serializer import build_model_input
from src.scheduler.suggestion_validator import validate_suggestion_input
from utils.logger import SmartCalendarLogger

logger = logging.getLogger(__name__)


class SuggestionService:
    """
    Single entry point for AI time suggestions.

    Every failure is turned into a SuggestionResponse; callers never see
    an exception from `suggest`.
    """

    def __init__(self, store: EventStore, llm_client):
        self.store = store
        self.llm_client = llm_client

    def suggest(self, raw_input: Mapping[str, Any]) -> SuggestionResponse:
        start_time = time.time()
        try:
            result = self._run_pipeline(raw_input)
        except ValidationError as e:
            logger.info(f"Suggestion input invalid: {e}")
            response = SuggestionResponse.fail(str(e))
        except (ServiceCallError, SchemaViolationError) as e:
            logger.error(f"AI suggestion failed ({type(e).__name__}): {e}")
            response = SuggestionResponse.fail(GENERIC_FAILURE_MESSAGE)
        except Exception as e:
            logger.exception(f"Unexpected error in suggestion pipeline: {e}")
            response = SuggestionResponse.fail(GENERIC_FAILURE_MESSAGE)
        else:
            response = SuggestionResponse.ok(result)

        SmartCalendarLogger.log_suggestion(raw_input, response, time.time() - start_time)
        return response

    def _run_pipeline(self, raw_input: Mapping[str, Any]) -> SuggestionResult:
        outcome = validate_suggestion_input(raw_input)
        if not outcome.ok:
            raise ValidationError(outcome.messages)

        model_input = build_model_input(outcome.value, self.store.list())
        logger.info(f"🤖 Requesting suggestion for a {model_input['newEventDuration']} minute event "
                    f"against {len(self.store)} existing events")

        raw_result = self.llm_client.suggest_optimal_time(model_input)
        return self._check_result(raw_result)

    @staticmethod
    def _check_result(raw_result: Any) -> SuggestionResult:
        if not isinstance(raw_result, Mapping):
            raise SchemaViolationError("Suggestion response is not a JSON object")
        try:
            return SuggestionResult.model_validate(dict(raw_result))
        except PydanticValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
            raise SchemaViolationError(f"Suggestion response violates output schema: {fields}") from e
