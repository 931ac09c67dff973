"""Error hierarchy shared by the reconciliation engine and its adapters."""

from __future__ import annotations


class ReconciliationError(RuntimeError):
    """Base class for failures surfaced by a reconciliation pass."""


class ValidationError(ReconciliationError, ValueError):
    """Raised before any remote call when the desired state is not acceptable."""


class RemoteError(ReconciliationError):
    """Raised by budgeting client adapters for any failure reported by the remote side."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class NotificationNotFoundError(RemoteError):
    """The remote service reported the notification (or its budget) as absent."""


class AmbiguousMatchError(ReconciliationError):
    """Several remote notifications share one comparison key.

    Not raised: matching keeps the first candidate.
    """

    def __init__(self, message: str, *, candidates: int) -> None:
        super().__init__(message)
        self.candidates = candidates
