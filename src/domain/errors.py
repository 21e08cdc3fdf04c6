"""
Domain error taxonomy.

Every failure raised by a component is a DomainError. The API layer turns
them into the failure envelope using ``status_code`` and ``message``; nothing
else about the exception is exposed.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for failures a caller can act on."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Invalid request"


class InvalidStateTransition(DomainError):
    """Moderation transition not allowed from the current state."""

    status_code = 400
    default_message = "Invalid status transition"


class Unauthenticated(DomainError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(DomainError):
    """Authenticated, but missing the ownership or admin capability."""

    status_code = 403
    default_message = "You are not authorized to perform this action"


class NotFound(DomainError):
    status_code = 404
    default_message = "Not found"


class DependencyFailure(DomainError):
    """The store or blob collaborator failed. ``retryable`` marks timeouts/locks."""

    status_code = 500
    default_message = "A backing service failed"

    def __init__(self, message: str | None = None, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


def describe_pydantic_error(exc: Exception) -> str:
    """First error of a pydantic ValidationError as ``field: message``."""
    errors = getattr(exc, "errors", None)
    if not callable(errors):
        return str(exc)
    first = errors()[0] if errors() else {}
    loc = ".".join(str(p) for p in first.get("loc", ()))
    msg = first.get("msg", "Invalid value")
    return f"{loc}: {msg}" if loc else msg
