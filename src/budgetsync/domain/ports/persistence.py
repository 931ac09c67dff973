"""Ports for persisting locally tracked notification state."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from budgetsync.domain.model import TrackedNotification


@runtime_checkable
class TrackedNotificationRepository(Protocol):
    """Persistence contract for tracked notifications, keyed by declared name."""

    def get(self, name: str) -> TrackedNotification | None: ...

    def all(self) -> list[TrackedNotification]: ...

    def save(self, tracked: TrackedNotification) -> None: ...

    def remove(self, name: str) -> None: ...


@runtime_checkable
class StateUnitOfWork(Protocol):
    """Transaction boundary around the tracked notification state.

    Nothing is persisted until ``commit``; leaving the context with an exception rolls
    back whatever was not committed yet.
    """

    @property
    def notifications(self) -> TrackedNotificationRepository: ...

    def __enter__(self) -> StateUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool | None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
