"""Domain errors raised by the lifecycle services and carried by facade outcomes.

Errors carry a kind and a human-readable reason and nothing HTTP-specific;
the API layer maps ErrorKind to a status code through a single table.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    LIMIT_EXCEEDED = "limit_exceeded"
    ALREADY_EXISTS = "already_exists"
    INVALID_OPERATION = "invalid_operation"
    CONFLICT = "conflict"


class DomainError(Exception):
    """Base class for expected, caller-correctable failures."""

    kind: ErrorKind = ErrorKind.INVALID_OPERATION

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.reason!r})"


class ValidationError(DomainError):
    """Missing or malformed input."""

    kind = ErrorKind.VALIDATION


class PermissionDenied(DomainError):
    """The principal may not perform the operation.

    ``authenticated`` separates "no principal" (UNAUTHENTICATED) from
    "principal present but not allowed" (FORBIDDEN).
    """

    def __init__(self, reason: str, *, authenticated: bool) -> None:
        super().__init__(reason)
        self.authenticated = authenticated

    @property
    def kind(self) -> ErrorKind:  # type: ignore[override]
        return ErrorKind.FORBIDDEN if self.authenticated else ErrorKind.UNAUTHENTICATED


class LimitExceeded(DomainError):
    """A cardinality limit would be exceeded (e.g. collaborator cap)."""

    kind = ErrorKind.LIMIT_EXCEEDED


class AlreadyExists(DomainError):
    kind = ErrorKind.ALREADY_EXISTS


class NotFound(DomainError):
    kind = ErrorKind.NOT_FOUND


class InvalidOperation(DomainError):
    kind = ErrorKind.INVALID_OPERATION


class Conflict(DomainError):
    """A concurrent writer got there first; retrying may succeed."""

    kind = ErrorKind.CONFLICT
