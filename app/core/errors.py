"""Error variants raised by the candidate engine.

Every failure the core reports is a ``ServiceError`` tagged with an
``ErrorKind``.  The HTTP layer matches on ``kind`` (see ``app.main``) rather
than on exception subclasses.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure kinds; the value doubles as the API error code."""
    validation = "VALIDATION_ERROR"
    not_found = "NOT_FOUND"
    storage = "STORAGE_ERROR"
    unauthorized = "UNAUTHORIZED"


class StorageFailure(str, Enum):
    """Sub-kind for ``ErrorKind.storage``."""
    conflict = "conflict"
    constraint = "constraint"
    timeout = "timeout"
    unavailable = "unavailable"


class ServiceError(Exception):
    """Typed failure carrying a kind and its payload."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        details: dict[str, list[str]] | None = None,
        failure: StorageFailure | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details or {}
        self.failure = failure
        self.retryable = retryable

    def detail_lines(self) -> list[str]:
        """Flatten per-field messages into ``"field: message"`` strings."""
        return [
            f"{field}: {msg}"
            for field, messages in self.details.items()
            for msg in messages
        ]

    def __repr__(self) -> str:
        return f"ServiceError(kind={self.kind.name}, message={self.message!r})"


def validation_error(message: str, details: dict[str, list[str]]) -> ServiceError:
    return ServiceError(ErrorKind.validation, message, details=details)


def not_found_error(candidate_id: str) -> ServiceError:
    return ServiceError(
        ErrorKind.not_found, f"Candidate with ID {candidate_id} not found"
    )


def storage_error(
    message: str,
    failure: StorageFailure = StorageFailure.unavailable,
    *,
    retryable: bool = False,
) -> ServiceError:
    return ServiceError(
        ErrorKind.storage, message, failure=failure, retryable=retryable
    )


def unauthorized_error() -> ServiceError:
    return ServiceError(ErrorKind.unauthorized, "Unauthorized")
