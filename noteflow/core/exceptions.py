"""Base exceptions for the domain layer."""

from __future__ import annotations


class DomainError(Exception):
    """Base class for all domain level exceptions."""


class NotFoundError(DomainError):
    """Raised when an entity cannot be located."""


class ValidationError(DomainError):
    """Raised when an action is blocked locally, before any remote call."""


class NotAuthenticatedError(ValidationError):
    """Raised when an action needs a current user and there is none."""


class RemoteError(DomainError):
    """A remote operation reported a failure.

    ``message`` is the backend's failure description, kept verbatim.
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation

    def __str__(self) -> str:
        return self.message


class GatewayUnavailableError(RemoteError):
    """The backend could not be reached or replied with garbage."""


# Alias to keep a generic name for error type hints
Error = DomainError

__all__ = [
    "DomainError",
    "NotFoundError",
    "ValidationError",
    "NotAuthenticatedError",
    "RemoteError",
    "GatewayUnavailableError",
    "Error",
]
