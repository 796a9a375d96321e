"""Domain error kinds raised by repositories and services.

Transport concerns live in :mod:`user_api.api.errors`, which maps each kind to
an HTTP status exactly once.
"""
from __future__ import annotations


class ServiceError(Exception):
    """Base class for every expected failure surfaced to API callers."""

    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(ServiceError):
    default_message = "Validation failed"

    def __init__(self, errors: list[dict[str, str]] | None = None, message: str | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class Conflict(ServiceError):
    default_message = "Email already in use"


class Unauthenticated(ServiceError):
    default_message = "Not authenticated"


class Forbidden(ServiceError):
    default_message = "You do not have permission to perform this action"


class NotFound(ServiceError):
    default_message = "User not found"


class StorageUnavailable(ServiceError):
    """The persistent backend could not be reached."""

    default_message = "Storage backend unavailable"
