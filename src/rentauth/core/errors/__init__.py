"""Error handling module with RFC 7807 Problem Details."""

from rentauth.core.errors.exceptions import (
    AppException,
    DeliveryError,
    ForbiddenError,
    InvalidCredentialsError,
    NotFoundError,
    RateLimitError,
    UnauthorizedError,
    ValidationError,
)
from rentauth.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AppException",
    "DeliveryError",
    # Handlers
    "FieldError",
    "ForbiddenError",
    "InvalidCredentialsError",
    "NotFoundError",
    "ProblemDetail",
    "RateLimitError",
    "UnauthorizedError",
    "ValidationError",
    "register_exception_handlers",
]
