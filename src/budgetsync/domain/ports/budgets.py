"""Port for the remote budgeting service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from budgetsync.domain.model import NotificationDescriptor, SubscriberEntry


@runtime_checkable
class BudgetsClient(Protocol):
    """Remote operations on the notifications of one budget.

    Notifications are addressed by their full descriptor; the service issues no other
    identifier. Implementations raise ``RemoteError`` subclasses on failure.
    """

    def create_notification(
        self,
        *,
        budget_name: str,
        account_id: str,
        notification: NotificationDescriptor,
        subscribers: Sequence[SubscriberEntry],
    ) -> None: ...

    def list_notifications(
        self,
        *,
        budget_name: str,
        account_id: str,
    ) -> list[NotificationDescriptor]: ...

    def list_subscribers(
        self,
        *,
        budget_name: str,
        account_id: str,
        notification: NotificationDescriptor,
    ) -> list[SubscriberEntry]: ...

    def add_subscriber(
        self,
        *,
        budget_name: str,
        account_id: str,
        notification: NotificationDescriptor,
        subscriber: SubscriberEntry,
    ) -> None: ...

    def remove_subscriber(
        self,
        *,
        budget_name: str,
        account_id: str,
        notification: NotificationDescriptor,
        subscriber: SubscriberEntry,
    ) -> None: ...

    def update_notification(
        self,
        *,
        budget_name: str,
        account_id: str,
        old: NotificationDescriptor,
        new: NotificationDescriptor,
    ) -> None: ...

    def delete_notification(
        self,
        *,
        budget_name: str,
        account_id: str,
        notification: NotificationDescriptor,
    ) -> None: ...


__all__ = ["BudgetsClient"]
