"""
PokéCompanion Backend: Custom Exception Hierarchy
==================================================

What:  Application-specific exceptions for each error scenario.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers registered in main.py turn them into structured
       JSON responses with the matching HTTP status code.
Who:   Raised by services, dependencies and the search history store.

Exception Hierarchy:
    PokeCompanionError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden (ownership check failed)
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class PokeCompanionError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only by some handlers)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PokeCompanionError):
    """
    Raised when input fails a business rule.

    Schema-level problems (wrong types, missing fields) are caught earlier by
    FastAPI and answered with 422. This covers the checks services still make
    when called directly, such as a blank search term.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(PokeCompanionError):
    """Missing, malformed or expired credentials, or wrong login details."""

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(PokeCompanionError):
    """The authenticated user does not own the resource being accessed."""

    def __init__(
        self,
        resource: str = "resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        super().__init__(
            message=f"You do not have permission to modify this {resource}",
            context=ctx,
        )


class NotFoundError(PokeCompanionError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that into this
    exception so routes never deal with None checks.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class ConflictError(PokeCompanionError):
    """The resource already exists (duplicate username, favorite, list entry)."""

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(PokeCompanionError):
    """
    Raised when a database operation fails unexpectedly.

    The message returned to the client is always generic; the original
    SQLAlchemy error is chained as __cause__ and logged server-side.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(PokeCompanionError):
    """Client exceeded the per-IP request limit; carries seconds until retry."""

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests from this IP. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
