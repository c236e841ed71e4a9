"""
Boundary objects of the suggestion pipeline
"""
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_core import PydanticCustomError

DURATION_MESSAGE = "Duration must be a positive number."
PREFERENCES_MESSAGE = "Preferences must be text."
GENERIC_FAILURE_MESSAGE = "An unexpected error occurred."

# Date, time and a numeric UTC offset (or Z); no zone names or abbreviations
SUGGESTED_TIME_PATTERN = re.compile(
    r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:\d{2})$'
)


def coerce_positive_minutes(value: Any) -> Optional[int]:
    """Whole, positive number of minutes from form input, or None"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            value = int(value)  # exact for any length of digits
        except ValueError:
            try:
                value = float(value)
            except ValueError:
                return None
    if not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if value <= 0 or value != int(value):
        return None
    return int(value)


def parse_suggested_time(value: str) -> datetime:
    """Parse a strict ISO 8601 timestamp into an aware datetime"""
    if not isinstance(value, str) or not SUGGESTED_TIME_PATTERN.match(value.strip()):
        raise ValueError(f"Invalid suggestedTime format: {value!r}. Expected: YYYY-MM-DDTHH:MM:SS+HH:MM")
    return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))


class SuggestionInput(BaseModel):
    """Validated form fragment for a suggestion request"""

    model_config = ConfigDict(frozen=True)

    duration: int
    preferences: Optional[str] = None

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, value: Any) -> int:
        minutes = coerce_positive_minutes(value)
        if minutes is None:
            raise PydanticCustomError("duration", DURATION_MESSAGE)
        return minutes

    @field_validator("preferences", mode="before")
    @classmethod
    def _text_preferences(cls, value: Any) -> Optional[str]:
        if value is not None and not isinstance(value, str):
            raise PydanticCustomError("preferences", PREFERENCES_MESSAGE)
        return value


class SuggestionResult(BaseModel):
    """A schema-conforming answer from the suggestion model"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    suggestedTime: str
    reasoning: str

    @field_validator("suggestedTime", "reasoning", mode="before")
    @classmethod
    def _strict_text(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise PydanticCustomError("type", "Expected a string")
        return value

    @field_validator("suggestedTime")
    @classmethod
    def _parseable_time(cls, value: str) -> str:
        try:
            parse_suggested_time(value)
        except ValueError:
            raise PydanticCustomError("suggested_time", "suggestedTime is not a valid ISO 8601 timestamp")
        return value.strip()

    @property
    def suggested_datetime(self) -> datetime:
        return parse_suggested_time(self.suggestedTime)


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


@dataclass(frozen=True)
class ValidationOutcome:
    """Either a validated SuggestionInput or every violated field"""

    ok: bool
    value: Optional[SuggestionInput] = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def messages(self) -> List[str]:
        return [e.message for e in self.errors]


@dataclass(frozen=True)
class SuggestionResponse:
    """Uniform result of the suggestion service"""

    success: bool
    data: Optional[SuggestionResult] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: SuggestionResult) -> "SuggestionResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "SuggestionResponse":
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data.model_dump()}
        return {"success": False, "error": self.error}
