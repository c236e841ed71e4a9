"""
Mock LLM client for running without an external model
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict

from config.settings import Config

logger = logging.getLogger(__name__)


class MockLLMClient:
    """Offline stand-in selected with LLM_PROVIDER=mock"""

    def __init__(self, model_name: str = None):
        self.model_name = model_name or "mock-llm"
        self.tz = Config.get_timezone()
        logger.info(f"Initialized Mock LLM client: {self.model_name}")

    def suggest_optimal_time(self, model_input: Dict[str, str]) -> Dict[str, Any]:
        """Always suggest the next business day at 10 AM"""
        logger.info(f"🤖 MOCK: Suggesting a {model_input.get('newEventDuration')} minute slot")

        tomorrow = datetime.now(self.tz) + timedelta(days=1)
        while tomorrow.weekday() >= 5:  # Skip weekends
            tomorrow += timedelta(days=1)
        start_time = tomorrow.replace(hour=10, minute=0, second=0, microsecond=0)

        result = {
            "suggestedTime": start_time.isoformat(),
            "reasoning": "Mock scheduling: next business day at 10 AM",
        }

        logger.info(f"🤖 MOCK: Suggested -> {result}")
        return result
