"""Custom exception classes for the expense tracker front-end."""
from typing import Any, Optional


class ExpenseTrackerError(Exception):
    """Base exception for the expense tracker."""
    pass


class ConfigError(ExpenseTrackerError):
    """Configuration-related errors."""
    pass


class ValidationError(ExpenseTrackerError):
    """Input the API refused with a 400; form checks return a Left instead of raising."""

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload


class ApiError(ExpenseTrackerError):
    """Any failed call to the REST API."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class NetworkError(ApiError):
    """The API could not be reached."""
    pass


class AuthError(ApiError):
    """401/403 from the API; the stored token is missing or no longer valid."""
    pass


class ApiValidationError(ApiError, ValidationError):
    """400 from the API."""

    def __init__(self, message: str, status_code: Optional[int] = 400, payload: Any = None):
        ApiError.__init__(self, message, status_code=status_code, payload=payload)
