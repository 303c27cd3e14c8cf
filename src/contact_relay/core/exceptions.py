"""
Custom exceptions for the contact relay.

Each exception carries the HTTP status, the public message shown to the
caller and any response headers. Internal causes are logged, never rendered.
"""

from typing import Dict, Optional


class ContactRelayException(Exception):
    """Base exception for the contact relay."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "internal_error",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.headers = dict(headers or {})


class SubmissionInvalidError(ContactRelayException):
    """Raised when a contact submission fails validation."""

    def __init__(self, reasons: list, headers: Optional[Dict[str, str]] = None) -> None:
        self.reasons = list(reasons)
        super().__init__(
            message=", ".join(self.reasons),
            status_code=400,
            error_code="validation_error",
            headers=headers,
        )


class RateLimitExceededError(ContactRelayException):
    """Raised when a client exceeds its admission quota."""

    def __init__(
        self,
        retry_after: int,
        message: str = "Too many requests, please try again later",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.retry_after = retry_after
        merged = dict(headers or {})
        merged["Retry-After"] = str(retry_after)
        super().__init__(
            message=message,
            status_code=429,
            error_code="rate_limit_exceeded",
            headers=merged,
        )


class DownstreamError(ContactRelayException):
    """Raised when the webhook rejects a delivery or cannot be reached."""

    def __init__(self, cause: str, headers: Optional[Dict[str, str]] = None) -> None:
        self.cause = cause
        super().__init__(
            message="n8n error",
            status_code=500,
            error_code="downstream_error",
            headers=headers,
        )


class InternalServerError(ContactRelayException):
    """Raised when an unexpected fault escapes a pipeline step."""

    def __init__(self, headers: Optional[Dict[str, str]] = None) -> None:
        super().__init__(
            message="Server error",
            status_code=500,
            error_code="internal_error",
            headers=headers,
        )


class ConfigurationError(ContactRelayException):
    """Raised when a component is built with unusable configuration."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, status_code=500, error_code="configuration_error")
