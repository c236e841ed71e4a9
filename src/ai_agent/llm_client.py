"""
LLM client for the Smart Event Scheduler
"""
import json
import logging
import time
from typing import Any, Dict, Optional

from openai import OpenAI

from config.settings import Config
from src.scheduler.errors import SchemaViolationError, ServiceCallError

logger = logging.getLogger(__name__)


class LLMClient:
    """Talks to an OpenAI-compatible chat completions endpoint"""

    def __init__(self, model_name: str = None, client: Optional[OpenAI] = None):
        self.config = Config()
        self.model_config = self.config.get_model_config(model_name)
        self.model_name = self.model_config["model"]

        self.client = client or OpenAI(
            api_key=self.model_config["api_key"] or "NULL",  # local servers ignore the key
            base_url=self.model_config["base_url"],
            timeout=self.config.LLM_TIMEOUT,
            max_retries=self.config.LLM_MAX_RETRIES
        )

        self.max_tokens = self.model_config["max_tokens"]
        self.temperature = self.model_config["temperature"]
        self.top_p = self.model_config["top_p"]
        self._total_requests = 0

        logger.info(f"Initialized LLM client: {self.model_name} @ {self.model_config['base_url']}")

    def _make_chat_request(self, prompt: str) -> str:
        """Send one prompt and return the raw text of the first choice"""
        self._total_requests += 1
        start_time = time.time()

        try:
            response = self.client.chat.completions.create(
                model=self.model_name,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                top_p=self.top_p,
                response_format={"type": "json_object"}
            )
        except Exception as e:
            logger.error(f"LLM request failed: {e}")
            raise ServiceCallError(str(e)) from e

        logger.info(f"LLM response in {time.time() - start_time:.2f}s")

        if not response.choices:
            raise SchemaViolationError("LLM response had no choices")
        content = response.choices[0].message.content
        if not content:
            raise SchemaViolationError("LLM response was empty")
        return content.strip()

    def suggest_optimal_time(self, model_input: Dict[str, str]) -> Dict[str, Any]:
        """
        Ask the model for a single optimal slot.

        Args:
            model_input: existingEvents / newEventDuration / userPreferences
                values produced by the serializer.

        Returns:
            The JSON object the model answered with, not yet schema-checked.

        Raises:
            ServiceCallError: the request itself failed.
            SchemaViolationError: the answer holds no JSON object.
        """
        prompt = self.config.SMART_SCHEDULING_PROMPT.format(
            existingEvents=model_input["existingEvents"],
            newEventDuration=model_input["newEventDuration"],
            userPreferences=model_input.get("userPreferences", "")
        )

        response = self._make_chat_request(prompt)
        parsed = self._extract_json_from_response(response)
        if parsed is None:
            logger.warning(f"No JSON object in LLM response: {response[:200]}")
            raise SchemaViolationError("LLM response did not contain a JSON object")
        return parsed

    def _extract_json_from_response(self, response: str) -> Optional[Dict[str, Any]]:
        """Extract a JSON object from a model response with multiple strategies"""
        strategies = [
            lambda r: json.loads(r),
            lambda r: self._extract_json_by_braces(r),
            lambda r: self._extract_json_from_end(r),
        ]

        for strategy in strategies:
            try:
                result = strategy(response)
                if isinstance(result, dict):
                    return result
            except (json.JSONDecodeError, ValueError) as e:
                logger.debug(f"JSON extraction strategy failed: {e}")
                continue

        return None

    def _extract_json_by_braces(self, response: str) -> Optional[Dict[str, Any]]:
        """Extract JSON by finding balanced braces"""
        start = response.find('{')
        if start == -1:
            return None

        brace_count = 0
        for i, char in enumerate(response[start:], start):
            if char == '{':
                brace_count += 1
            elif char == '}':
                brace_count -= 1
                if brace_count == 0:
                    return json.loads(response[start:i + 1])
        return None

    def _extract_json_from_end(self, response: str) -> Optional[Dict[str, Any]]:
        """Extract JSON from the last line that looks like an object"""
        for line in reversed(response.strip().split('\n')):
            line = line.strip()
            if line.startswith('{') and line.endswith('}'):
                try:
                    return json.loads(line)
                except json.JSONDecodeError:
                    continue
        return None


def create_llm_client(model_name: str = None):
    """Build the configured LLM backend"""
    if Config.LLM_PROVIDER == "mock":
        from src.ai_agent.mock_llm_client import MockLLMClient
        return MockLLMClient(model_name)
    return LLMClient(model_name)
