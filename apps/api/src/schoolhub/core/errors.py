"""
Service Errors

Exception hierarchy raised by the authorization gates and the entity
services. Each error carries the HTTP status and a machine-readable code;
the exception handlers in ``schoolhub.core.responses`` turn them into the
failure envelope.

Taxonomy:
- ValidationError (400): malformed or missing input
- BusinessRuleError (400): well-formed input that breaks a business rule
- AuthenticationError (401): missing, invalid or expired token
- AuthorizationError (403): valid identity, insufficient scope
- NotFoundError (404): target absent or outside the caller's tenant
- ConflictError (409): uniqueness violation
- RateLimitExceededError (429)
- InternalError (500): unexpected persistence/runtime failure
"""

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


class ServiceError(Exception):
    """Base exception for gate and service errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 400,
        headers: dict[str, str] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.headers = headers
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when a payload fails its field rules."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            message="; ".join(errors),
            error_code="VALIDATION_ERROR",
            status_code=400,
        )


class BusinessRuleError(ServiceError):
    """Raised when a request is well-formed but not allowed by a business rule."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="BAD_REQUEST", status_code=400)


class AuthenticationError(ServiceError):
    """Raised when no usable identity is attached to the request."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message, error_code="UNAUTHORIZED", status_code=401)


class AuthorizationError(ServiceError):
    """Raised when the identity lacks the scope for the request."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message=message, error_code="FORBIDDEN", status_code=403)


class NotFoundError(ServiceError):
    """Raised when a target is missing or belongs to another tenant."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="NOT_FOUND", status_code=404)


class ConflictError(ServiceError):
    """Raised when a write would violate a uniqueness invariant."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="CONFLICT", status_code=409)


class RateLimitExceededError(ServiceError):
    """Raised when a client exceeds its request window."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            message="Too many requests, please try again later",
            error_code="RATE_LIMIT_EXCEEDED",
            status_code=429,
            headers={"Retry-After": str(retry_after_seconds)},
        )


class InternalError(ServiceError):
    """Raised when an operation fails for an unexpected reason."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="INTERNAL_ERROR", status_code=500)


def service_operation(
    func: Callable[P, Awaitable[R]],
) -> Callable[P, Awaitable[R]]:
    """
    Error boundary for a public service operation.

    ServiceErrors pass through untouched; anything else is logged and
    re-raised as an InternalError carrying the original message.
    """

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except ServiceError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error in {func.__qualname__}: {e}")
            raise InternalError(str(e)) from e

    return wrapper
