"""Domain error taxonomy.

Gateways raise these at the service boundary; the chart orchestrator decides
per stage whether an error is fatal to the whole fetch or recorded as a
partial failure.
"""

from enum import Enum


class VinylogueError(Exception):
    """Base class for all Vinylogue errors."""


class TransportError(VinylogueError):
    """Connectivity failure or timeout talking to the remote service.

    Retryable by the caller; the core never retries automatically.
    """


class ServiceErrorKind(Enum):
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    OTHER = "other"


class ServiceError(VinylogueError):
    """Non-success response from the remote service."""

    def __init__(
        self,
        kind: ServiceErrorKind,
        message: str = "",
        code: int | None = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.code = code
        super().__init__(message or kind.value)

    def __repr__(self) -> str:
        return f"ServiceError(kind={self.kind.name}, code={self.code}, message={self.message!r})"


class DuplicateUserError(VinylogueError):
    """Raised when a user name is already present in the favorites list."""

    def __init__(self, user_name: str) -> None:
        self.user_name = user_name
        super().__init__(f"User '{user_name}' is already in favorites")


class PersistenceError(VinylogueError):
    """Stored data could not be read or written."""
