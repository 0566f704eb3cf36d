"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class CareChatError(Exception):
    """Base exception for carechat."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(CareChatError):
    """Resource not found."""

    pass


class ValidationError(CareChatError):
    """Validation error."""

    pass


class BusinessLogicError(CareChatError):
    """Business logic constraint violation."""

    pass


class InfrastructureError(CareChatError):
    """Infrastructure-related error (DB, external services, etc.)."""

    pass


class StoreUnavailableError(InfrastructureError):
    """The conversation store could not be reached."""

    pass


class InferenceError(CareChatError):
    """Inference call failed."""

    pass


class TransportError(InferenceError):
    """Inference failed before any fragment was received."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, details={"status_code": status_code})
        self.status_code = status_code


class StreamInterruptedError(InferenceError):
    """Inference failed after part of the reply was received."""

    def __init__(self, message: str, partial_text: str = ""):
        super().__init__(message, details={"partial_text": partial_text})
        self.partial_text = partial_text
