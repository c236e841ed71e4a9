"""
Authentication boundary: identity provider wrapper and error mapping
"""
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from werkzeug.security import check_password_hash, generate_password_hash

from config.settings import Config
from utils.validators import DataSanitizer, RequestValidator

logger = logging.getLogger(__name__)


class AuthErrorCode(Enum):
    EMAIL_ALREADY_IN_USE = "auth/email-already-in-use"
    INVALID_EMAIL = "auth/invalid-email"
    WEAK_PASSWORD = "auth/weak-password"
    INVALID_CREDENTIALS = "auth/invalid-credential"
    UNKNOWN = "auth/unknown"


# Single place that turns provider error codes into user-facing text
AUTH_ERROR_MESSAGES: Dict[AuthErrorCode, Tuple[str, str]] = {
    AuthErrorCode.EMAIL_ALREADY_IN_USE: (
        "Email Already in Use",
        "This email is already associated with an account. Please sign in."),
    AuthErrorCode.INVALID_EMAIL: (
        "Invalid Email",
        "Please enter a valid email address."),
    AuthErrorCode.WEAK_PASSWORD: (
        "Weak Password",
        "Your password should be at least {min_length} characters long."),
    AuthErrorCode.INVALID_CREDENTIALS: (
        "Sign-In Error",
        "The email or password is incorrect."),
    AuthErrorCode.UNKNOWN: (
        "An unexpected error occurred.",
        "Please try again later."),
}


def describe_auth_error(code: AuthErrorCode,
                        min_password_length: int = Config.LOGIN_MIN_PASSWORD_LENGTH) -> Tuple[str, str]:
    title, description = AUTH_ERROR_MESSAGES.get(code, AUTH_ERROR_MESSAGES[AuthErrorCode.UNKNOWN])
    return title, description.format(min_length=min_password_length)


class AuthProviderError(Exception):
    """Failure reported by the identity provider"""

    def __init__(self, code: AuthErrorCode, message: str = "", min_password_length: Optional[int] = None):
        self.code = code
        self.min_password_length = min_password_length
        super().__init__(message or code.value)


class InMemoryIdentityProvider:
    """Identity provider that keeps accounts for the lifetime of the process"""

    def __init__(self, min_password_length: int = Config.LOGIN_MIN_PASSWORD_LENGTH):
        self.min_password_length = min_password_length
        self._accounts: Dict[str, str] = {}
        self._lock = threading.Lock()

    def create_user(self, email: str, password: str) -> str:
        if not RequestValidator.validate_email(email):
            raise AuthProviderError(AuthErrorCode.INVALID_EMAIL)
        if len(password) < self.min_password_length:
            raise AuthProviderError(AuthErrorCode.WEAK_PASSWORD,
                                    min_password_length=self.min_password_length)

        email = DataSanitizer.sanitize_email(email)
        with self._lock:
            if email in self._accounts:
                raise AuthProviderError(AuthErrorCode.EMAIL_ALREADY_IN_USE)
            self._accounts[email] = generate_password_hash(password)
        return email

    def sign_in(self, email: str, password: str) -> str:
        if not RequestValidator.validate_email(email):
            raise AuthProviderError(AuthErrorCode.INVALID_EMAIL)

        email = DataSanitizer.sanitize_email(email)
        with self._lock:
            password_hash = self._accounts.get(email)
        if password_hash is None or not check_password_hash(password_hash, password):
            raise AuthProviderError(AuthErrorCode.INVALID_CREDENTIALS)
        return email


@dataclass
class AuthResult:
    success: bool
    title: str
    description: str
    redirect: Optional[str] = None
    email: Optional[str] = None
    error_code: Optional[str] = None
    field_errors: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "success": self.success,
            "title": self.title,
            "description": self.description,
            "redirect": self.redirect,
            "email": self.email,
            "error_code": self.error_code,
            "errors": self.field_errors,
        }


class AuthService:
    """Login and sign-up on top of an identity provider"""

    def __init__(self, provider):
        self.provider = provider

    def login(self, email: str, password: str) -> AuthResult:
        field_errors = RequestValidator.validate_credentials(
            email, password, Config.LOGIN_MIN_PASSWORD_LENGTH)
        if field_errors:
            return AuthResult(False, "Invalid Input", "Please correct the highlighted fields.",
                              field_errors=field_errors)

        try:
            account = self.provider.sign_in(email, password)
        except AuthProviderError as e:
            return self._failure(e)

        logger.info(f"🔐 Login succeeded for {account}")
        return AuthResult(True, "Login Successful",
                          "Welcome back! Redirecting you to your dashboard.",
                          redirect=Config.DASHBOARD_PATH, email=account)

    def signup(self, email: str, password: str) -> AuthResult:
        field_errors = RequestValidator.validate_credentials(
            email, password, Config.SIGNUP_MIN_PASSWORD_LENGTH)
        if field_errors:
            return AuthResult(False, "Invalid Input", "Please correct the highlighted fields.",
                              field_errors=field_errors)

        try:
            account = self.provider.create_user(email, password)
        except AuthProviderError as e:
            return self._failure(e)

        logger.info(f"🔐 Account created for {account}")
        return AuthResult(True, "Account Created!",
                          "Welcome! Redirecting you to the dashboard.",
                          redirect=Config.DASHBOARD_PATH, email=account)

    @staticmethod
    def _failure(error: AuthProviderError) -> AuthResult:
        if error.min_password_length is not None:
            title, description = describe_auth_error(error.code, error.min_password_length)
        else:
            title, description = describe_auth_error(error.code)
        logger.info(f"🔐 Authentication failed: {error.code.value}")
        return AuthResult(False, title, description, error_code=error.code.value)
