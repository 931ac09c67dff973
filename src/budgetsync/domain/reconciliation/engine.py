"""Create/read/update/delete lifecycle for one budget notification.

The engine composes identity matching and subscriber diffing with an injected
``BudgetsClient``. Every operation issues a strictly sequential chain of remote calls,
and remote errors propagate unchanged: a pass that fails halfway leaves the remote side
partially converged, and the next ``read`` picks up from there.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from budgetsync.domain.errors import NotificationNotFoundError, ValidationError
from budgetsync.domain.model import (
    LocalHandle,
    ReconciliationRecord,
    SubscriberEntry,
    SubscriberSet,
)

from .diffing import diff_subscribers
from .matching import find_match

if TYPE_CHECKING:
    from budgetsync.domain.ports.budgets import BudgetsClient

HandleFactory = Callable[[str, str], LocalHandle]

log = getLogger(__name__)


def mint_handle(account_id: str, budget_name: str) -> LocalHandle:
    """Return a process-local handle; the remote service never sees it."""

    return LocalHandle(f"{account_id}:{budget_name}:{uuid.uuid4().hex}")


@dataclass(slots=True)
class NotificationReconciler:
    """Converge one remote notification towards a declared record."""

    client: BudgetsClient
    default_account_id: str | None = None
    handle_factory: HandleFactory = field(default=mint_handle)

    def account_id(self, record: ReconciliationRecord) -> str:
        account_id = record.account_id or self.default_account_id
        if not account_id:
            raise ValidationError(
                f"No account id for budget {record.budget_name!r} and no default account"
            )
        return account_id

    def resolve(self, record: ReconciliationRecord) -> ReconciliationRecord:
        """Return ``record`` with its effective account filled in."""

        return record.with_account(self.account_id(record))

    def create(self, desired: ReconciliationRecord) -> LocalHandle:
        desired.require_subscribers()
        account_id = self.account_id(desired)

        log.info(
            "Creating notification %s for budget %s (account %s) with %s subscriber(s)",
            desired.notification,
            desired.budget_name,
            account_id,
            len(desired.subscribers),
        )
        self.client.create_notification(
            budget_name=desired.budget_name,
            account_id=account_id,
            notification=desired.notification,
            subscribers=desired.subscribers.entries(),
        )
        return self.handle_factory(account_id, desired.budget_name)

    def read(self, record: ReconciliationRecord) -> ReconciliationRecord | None:
        """Re-locate ``record`` remotely; ``None`` means it no longer exists."""

        account_id = self.account_id(record)
        remote = self.client.list_notifications(
            budget_name=record.budget_name,
            account_id=account_id,
        )
        match = find_match(remote, record.notification)
        if match is None:
            log.warning(
                "Couldn't find notification %s for budget %s, removing from state",
                record.notification,
                record.budget_name,
            )
            return None

        entries = self.client.list_subscribers(
            budget_name=record.budget_name,
            account_id=account_id,
            notification=match,
        )
        return ReconciliationRecord(
            budget_name=record.budget_name,
            account_id=account_id,
            notification=match,
            subscribers=SubscriberSet.from_entries(entries),
        )

    def update(self, previous: ReconciliationRecord, desired: ReconciliationRecord) -> None:
        desired.require_subscribers()
        account_id = self.account_id(desired)

        self._update_subscribers(previous, desired, account_id=account_id)

        if desired.notification.differs_from(previous.notification):
            log.info(
                "Updating notification for budget %s: %s -> %s",
                desired.budget_name,
                previous.notification,
                desired.notification,
            )
            self.client.update_notification(
                budget_name=desired.budget_name,
                account_id=account_id,
                old=previous.notification,
                new=desired.notification,
            )

    def delete(self, record: ReconciliationRecord) -> None:
        account_id = self.account_id(record)
        log.info(
            "Deleting notification %s for budget %s (account %s)",
            record.notification,
            record.budget_name,
            account_id,
        )
        try:
            self.client.delete_notification(
                budget_name=record.budget_name,
                account_id=account_id,
                notification=record.notification,
            )
        except NotificationNotFoundError:
            log.info("Notification %s was already absent", record.notification)

    def _update_subscribers(
        self,
        previous: ReconciliationRecord,
        desired: ReconciliationRecord,
        *,
        account_id: str,
    ) -> None:
        # The remote notification still carries the previous key until the rule update.
        notification = previous.notification
        diffs = diff_subscribers(previous.subscribers, desired.subscribers)

        for kind, diff in diffs.items():
            for address in sorted(diff.to_add):
                log.debug("Adding %s subscriber %s", kind, address)
                self.client.add_subscriber(
                    budget_name=desired.budget_name,
                    account_id=account_id,
                    notification=notification,
                    subscriber=SubscriberEntry(address, kind),
                )
        for kind, diff in diffs.items():
            for address in sorted(diff.to_remove):
                log.debug("Removing %s subscriber %s", kind, address)
                self.client.remove_subscriber(
                    budget_name=desired.budget_name,
                    account_id=account_id,
                    notification=notification,
                    subscriber=SubscriberEntry(address, kind),
                )
