"""Mapping from domain error kinds to HTTP responses."""

from __future__ import annotations

from typing import TypeVar

from fastapi import HTTPException, status

from ideahub.services.access import Outcome
from ideahub.services.errors import DomainError, ErrorKind

T = TypeVar("T")

STATUS_FOR_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.LIMIT_EXCEEDED: status.HTTP_409_CONFLICT,
    ErrorKind.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_OPERATION: status.HTTP_400_BAD_REQUEST,
}


def http_error(exc: DomainError) -> HTTPException:
    return HTTPException(status_code=STATUS_FOR_KIND[exc.kind], detail=exc.reason)


def unwrap(outcome: Outcome[T]) -> T:
    """Return the outcome's value or raise the matching HTTPException."""
    if outcome.error is not None:
        raise http_error(outcome.error)
    return outcome.value  # type: ignore[return-value]
