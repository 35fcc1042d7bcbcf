"""
Base classes for domain errors raised by the service layer.

Every error carries a stable ``kind`` so the API layer can translate it to a
response without string matching. Service modules subclass these to build
their own small hierarchies.
"""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base class for caller-visible domain errors."""

    kind = "invalid_request"
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(ServiceError):
    kind = "validation_failed"
    default_message = "Invalid input"


class NotFound(ServiceError):
    kind = "not_found"
    default_message = "Resource not found"


class Conflict(ServiceError):
    kind = "conflict"
    default_message = "Resource already exists"


class AccessDenied(ServiceError):
    kind = "access_denied"
    default_message = "Not permitted"

    def __init__(
        self,
        message: str | None = None,
        *,
        reason: str | None = None,
        decision: Any = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.decision = decision


class Gone(ServiceError):
    kind = "gone"
    default_message = "Resource is no longer available"
