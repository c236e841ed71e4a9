"""
Configuration settings for the Smart Event Scheduler
"""
import os
import re
from datetime import timedelta, timezone
from typing import Dict, Any


class Config:
    # LLM Configuration (any OpenAI-compatible chat completions endpoint)
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai")  # "openai" or "mock"
    LLM_BASE_URL = os.getenv("LLM_BASE_URL", "https://api.openai.com/v1")
    LLM_API_KEY = os.getenv("LLM_API_KEY", os.getenv("OPENAI_API_KEY", ""))
    DEFAULT_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
    LLM_TIMEOUT = 25  # seconds, below the suggestion timeout
    LLM_MAX_RETRIES = 0  # failed suggestions are never retried automatically

    MAX_TOKENS = 512
    TEMPERATURE = 0.2
    TOP_P = 0.9

    # Suggestion task
    SUGGESTION_TIMEOUT = float(os.getenv("SUGGESTION_TIMEOUT", "30"))
    SUGGESTION_WORKERS = 4

    # Edit sheets left open by clients are dropped after this long (seconds)
    SHEET_IDLE_TIMEOUT = float(os.getenv("SHEET_IDLE_TIMEOUT", "1800"))
    MAX_OPEN_SHEETS = int(os.getenv("MAX_OPEN_SHEETS", "200"))

    # Calendar Configuration
    TIMEZONE = os.getenv("CALENDAR_TIMEZONE", "+00:00")
    EVENT_CATEGORIES = ("personal", "work", "focus-time", "meeting")
    DEFAULT_CATEGORY = "meeting"
    REMINDER_OPTIONS = ("5", "15", "30", "60", "1440")  # minutes before start
    DEFAULT_EVENT_DURATION = 30  # minutes
    SEED_MOCK_EVENTS = os.getenv("SEED_MOCK_EVENTS", "1") == "1"

    # Authentication
    LOGIN_MIN_PASSWORD_LENGTH = 6
    SIGNUP_MIN_PASSWORD_LENGTH = 8
    DASHBOARD_PATH = "/dashboard"
    DEMO_USER_EMAIL = os.getenv("DEMO_USER_EMAIL", "demo@example.com")
    DEMO_USER_PASSWORD = os.getenv("DEMO_USER_PASSWORD", "demo-password")

    # API Configuration
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("API_PORT", "5000"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Date/Time Formats
    FORM_TIME_FORMAT = "%H:%M"
    FORM_DATE_FORMAT = "%Y-%m-%d"

    SMART_SCHEDULING_PROMPT = """You are an AI assistant that helps users schedule new events by suggesting the optimal time.

Consider the user's existing events, the duration of the new event, and the user's preferences to find the best time slot.

Existing Events: {existingEvents}
New Event Duration: {newEventDuration} minutes
User Preferences: {userPreferences}

Suggest an optimal time for the new event and explain your reasoning.

REQUIRED JSON FORMAT:
{{"suggestedTime": "2025-06-01T14:30:00Z", "reasoning": "Free afternoon slot after the design review"}}

IMPORTANT:
- "suggestedTime" MUST be an ISO 8601 date-time with a numeric UTC offset or Z (YYYY-MM-DDTHH:MM:SS+HH:MM)
- Return exactly the two fields "suggestedTime" and "reasoning"

Return ONLY the JSON object (no explanations):"""

    @classmethod
    def get_model_config(cls, model_name: str = None) -> Dict[str, Any]:
        """Get configuration for the suggestion model"""
        return {
            "provider": cls.LLM_PROVIDER,
            "base_url": cls.LLM_BASE_URL,
            "api_key": cls.LLM_API_KEY,
            "model": model_name or cls.DEFAULT_MODEL,
            "max_tokens": cls.MAX_TOKENS,
            "temperature": cls.TEMPERATURE,
            "top_p": cls.TOP_P,
        }

    @classmethod
    def get_timezone(cls, offset: str = None) -> timezone:
        """Parse a "+HH:MM" offset (or "UTC"/"Z") into a tzinfo"""
        offset = (offset or cls.TIMEZONE).strip()
        if offset.upper() in ("UTC", "Z"):
            return timezone.utc

        match = re.fullmatch(r'([+-])(\d{2}):?(\d{2})', offset)
        if not match:
            raise ValueError(f"Invalid timezone offset: {offset}. Expected: +HH:MM")

        sign, hours, minutes = match.groups()
        delta = timedelta(hours=int(hours), minutes=int(minutes))
        return timezone(-delta if sign == "-" else delta)
