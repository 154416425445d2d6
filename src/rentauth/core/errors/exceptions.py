"""Domain exceptions for the authentication core.

These exceptions represent business-logic errors and are automatically
converted to RFC 7807 Problem Details responses by the exception handlers.

Authentication failures are deliberately coarse: every lookup miss, bad
signature, expiry or bad passcode becomes ``InvalidCredentialsError`` so
responses never reveal which check failed.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details merged into the response body
        headers: Extra response headers
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        self.headers = headers or {}
        super().__init__(self.message)


class ValidationError(AppException):
    """Raised when required fields are missing or malformed.

    Unlike credential failures this is safe to report precisely:
    the shape of a request carries no enumeration risk.

    Example:
        raise ValidationError(
            "Invalid phone number",
            errors=[{"field": "phoneNumber", "message": "Expected E.164 format"}]
        )
    """

    message = "Validation error"
    error_code = "validation_error"
    status_code = 422

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = errors
        super().__init__(message=message, details=details, **kwargs)


class UnauthorizedError(AppException):
    """Raised when authentication is required but not provided or invalid."""

    message = "Authentication required"
    error_code = "unauthorized"
    status_code = 401


class InvalidCredentialsError(UnauthorizedError):
    """Raised for any credential, token or passcode failure.

    The message is fixed on purpose; pass the failed check to the logger,
    never to this exception.
    """

    message = "Invalid credentials"
    error_code = "invalid_credentials"

    def __init__(self, headers: dict[str, str] | None = None) -> None:
        super().__init__(headers=headers)


class NotFoundError(AppException):
    """Raised when a route is disabled or a resource does not exist."""

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404


class ForbiddenError(AppException):
    """Raised when the principal lacks the role for an action.

    Example:
        raise ForbiddenError("Your current role does not allow this action")
    """

    message = "Access forbidden"
    error_code = "forbidden"
    status_code = 403


class RateLimitError(AppException):
    """Raised when a rate limit budget is exhausted.

    Carries the retry delay both in the body and in a ``Retry-After``
    header. ``reason`` names the route family, never the scope (IP or
    account) that tripped.
    """

    message = "Too many attempts. Please try again later."
    error_code = "rate_limit_exceeded"
    status_code = 429

    def __init__(self, retry_after: int, reason: str) -> None:
        self.retry_after = retry_after
        self.reason = reason
        super().__init__(
            details={"retry_after": retry_after, "reason": reason},
            headers={"Retry-After": str(retry_after)},
        )


class DeliveryError(AppException):
    """Raised when a notification collaborator could not deliver a passcode."""

    message = "Unable to deliver the one-time passcode. Please try again later."
    error_code = "delivery_failed"
    status_code = 502
