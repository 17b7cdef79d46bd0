"""
Error taxonomy shared by services and routes.

Services never raise across their boundary under normal failure conditions;
they return ``(value, None)`` or ``(default, ServiceError)``. Routes turn a
``ServiceError`` into an ``HTTPException`` with ``raise_for_error``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fastapi import HTTPException, status


class ConfigurationError(RuntimeError):
    """Store credentials missing or unusable. Fatal at construction time."""


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHENTICATED = "unauthenticated"
    STORE = "store"


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return self.message

    @classmethod
    def validation(cls, message: str) -> "ServiceError":
        return cls(ErrorKind.VALIDATION, message)

    @classmethod
    def not_found(cls, message: str) -> "ServiceError":
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str) -> "ServiceError":
        return cls(ErrorKind.CONFLICT, message)

    @classmethod
    def unauthenticated(cls, message: str) -> "ServiceError":
        return cls(ErrorKind.UNAUTHENTICATED, message)

    @classmethod
    def store(cls, message: str) -> "ServiceError":
        return cls(ErrorKind.STORE, message)


USERNAME_TAKEN = "This username is already taken."
UNEXPECTED = "An unexpected error occurred."

# PostgREST: ".single()" matched zero rows
NO_ROWS_CODE = "PGRST116"

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.STORE: status.HTTP_502_BAD_GATEWAY,
}


def status_for(error: ServiceError) -> int:
    return _STATUS_BY_KIND.get(error.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


def raise_for_error(error: Optional[ServiceError]) -> None:
    """Raise the matching HTTPException when a service returned an error."""
    if error is None:
        return
    raise HTTPException(status_code=status_for(error), detail=error.message)
