"""
Logging utilities for the Smart Event Scheduler
"""
import logging
import sys
from datetime import datetime
import json


class SmartCalendarLogger:
    """Custom logger for the Smart Event Scheduler"""

    @staticmethod
    def setup_logging(log_level: str = "INFO", log_file: str = None):
        """Setup logging configuration"""

        # Create formatter
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        # Setup root logger
        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level.upper()))

        # Clear existing handlers
        root_logger.handlers.clear()

        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        # File handler (if specified)
        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        # Suppress some noisy loggers
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('httpx').setLevel(logging.WARNING)
        logging.getLogger('openai').setLevel(logging.WARNING)
        logging.getLogger('werkzeug').setLevel(logging.WARNING)

        return root_logger

    @staticmethod
    def log_suggestion(raw_input, response, processing_time: float):
        """Log a suggestion request and its outcome for debugging"""
        logger = logging.getLogger(__name__)

        preferences = raw_input.get("preferences") if hasattr(raw_input, "get") else None
        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "processing_time_seconds": round(processing_time, 3),
            "request_summary": {
                "duration": str(raw_input.get("duration")) if hasattr(raw_input, "get") else None,
                "has_preferences": bool(preferences),
            },
            "response_summary": {
                "success": response.success,
                "suggested_time": response.data.suggestedTime if response.success else None,
                "error": response.error,
            }
        }

        logger.info(f"Suggestion processed: {json.dumps(log_entry, indent=2)}")
