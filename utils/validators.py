"""
Validation utilities for the Smart Event Scheduler
"""
import re
from typing import Dict


class RequestValidator:
    """Validator for incoming authentication payloads"""

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format"""
        email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return isinstance(email, str) and bool(re.match(email_pattern, email))

    @staticmethod
    def validate_credentials(email: str, password: str, min_password_length: int) -> Dict[str, str]:
        """Validate an email/password pair and return per-field errors"""
        errors = {}

        if not RequestValidator.validate_email(email):
            errors["email"] = "Please enter a valid email address."

        if not isinstance(password, str) or len(password) < min_password_length:
            errors["password"] = f"Password must be at least {min_password_length} characters."

        return errors


class DataSanitizer:
    """Sanitize and clean input data"""

    @staticmethod
    def sanitize_email(email: str) -> str:
        """Sanitize email address"""
        return email.strip().lower()
