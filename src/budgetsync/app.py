"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from budgetsync.adapters.budgets import HttpBudgetsClient
from budgetsync.adapters.sqlalchemy.unit_of_work import StateStore
from budgetsync.config.budgets import get_budgets_config
from budgetsync.domain.model import TrackedNotification
from budgetsync.domain.ports.persistence import StateUnitOfWork
from budgetsync.domain.reconciliation import NotificationReconciler

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from budgetsync.domain.model import DeclaredNotification, ReconciliationRecord
    from budgetsync.domain.ports.budgets import BudgetsClient
    from budgetsync.domain.ports.persistence import TrackedNotificationRepository

UnitOfWorkFactory = Callable[[], StateUnitOfWork]


log = getLogger(__name__)


class ApplyOutcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    REPLACED = "replaced"
    UNCHANGED = "unchanged"
    DELETED = "deleted"


@dataclass(slots=True)
class ApplyResult:
    outcomes: dict[str, ApplyOutcome] = field(default_factory=dict[str, ApplyOutcome])

    def names(self, outcome: ApplyOutcome) -> list[str]:
        return sorted(name for name, value in self.outcomes.items() if value is outcome)

    def count(self, outcome: ApplyOutcome) -> int:
        return sum(1 for value in self.outcomes.values() if value is outcome)


@dataclass(slots=True)
class RefreshResult:
    refreshed: list[str] = field(default_factory=list[str])
    removed: list[str] = field(default_factory=list[str])


def _build_reconciler(
    client: BudgetsClient | None,
    default_account_id: str | None,
) -> NotificationReconciler:
    if client is None:
        config = get_budgets_config()
        client = HttpBudgetsClient(config=config)
        default_account_id = default_account_id or config.account_id
    return NotificationReconciler(client=client, default_account_id=default_account_id)


@contextmanager
def _state_unit_of_work(factory: UnitOfWorkFactory | None) -> Iterator[StateUnitOfWork]:
    if factory is not None:
        with factory() as uow:
            yield uow
        return

    store = StateStore.from_uri()
    try:
        with store.unit_of_work() as uow:
            yield uow
    finally:
        store.close()


def _requires_replacement(previous: ReconciliationRecord, desired: ReconciliationRecord) -> bool:
    # A different budget or account addresses a different remote object.
    return (
        previous.budget_name != desired.budget_name or previous.account_id != desired.account_id
    )


def _is_converged(observed: ReconciliationRecord, desired: ReconciliationRecord) -> bool:
    return (
        not observed.notification.differs_from(desired.notification)
        and observed.subscribers == desired.subscribers
    )


def _create_tracked(
    reconciler: NotificationReconciler,
    name: str,
    desired: ReconciliationRecord,
) -> TrackedNotification:
    handle = reconciler.create(desired)
    observed = reconciler.read(desired)
    return TrackedNotification(name, handle, observed if observed is not None else desired)


def _apply_one(
    reconciler: NotificationReconciler,
    repository: TrackedNotificationRepository,
    declared: DeclaredNotification,
    existing: TrackedNotification | None,
) -> ApplyOutcome:
    desired = reconciler.resolve(declared.record)

    if existing is None:
        repository.save(_create_tracked(reconciler, declared.name, desired))
        return ApplyOutcome.CREATED

    previous = reconciler.resolve(existing.record)
    if _requires_replacement(previous, desired):
        desired.require_subscribers()
        reconciler.delete(previous)
        repository.save(_create_tracked(reconciler, declared.name, desired))
        return ApplyOutcome.REPLACED

    observed = reconciler.read(previous)
    if observed is None and desired.notification.differs_from(previous.notification):
        # A pass interrupted after the rule update leaves the remote under the new key.
        observed = reconciler.read(desired)
    if observed is None:
        repository.save(_create_tracked(reconciler, declared.name, desired))
        return ApplyOutcome.CREATED

    if _is_converged(observed, desired):
        repository.save(TrackedNotification(declared.name, existing.handle, desired))
        return ApplyOutcome.UNCHANGED

    reconciler.update(observed, desired)
    repository.save(TrackedNotification(declared.name, existing.handle, desired))
    return ApplyOutcome.UPDATED


def apply_declarations(
    declarations: Sequence[DeclaredNotification],
    *,
    client: BudgetsClient | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    default_account_id: str | None = None,
    prune: bool = True,
) -> ApplyResult:
    """Run one reconciliation pass converging remote notifications to ``declarations``.

    State is committed after every notification, so a failure part-way keeps the
    bookkeeping of what already converged. Tracked notifications that are no longer
    declared are deleted remotely unless ``prune`` is false.
    """

    reconciler = _build_reconciler(client, default_account_id)
    result = ApplyResult()
    log.info("Applying %s notification declaration(s)", len(declarations))

    with _state_unit_of_work(unit_of_work_factory) as uow:
        repository = uow.notifications
        tracked = {entry.name: entry for entry in repository.all()}

        for declared in declarations:
            outcome = _apply_one(reconciler, repository, declared, tracked.pop(declared.name, None))
            uow.commit()
            result.outcomes[declared.name] = outcome
            log.info("Notification %s: %s", declared.name, outcome)

        if prune:
            for name, stale in tracked.items():
                reconciler.delete(stale.record)
                repository.remove(name)
                uow.commit()
                result.outcomes[name] = ApplyOutcome.DELETED
                log.info("Notification %s: %s", name, ApplyOutcome.DELETED)

    log.info(
        "Finished apply: created=%s, updated=%s, replaced=%s, unchanged=%s, deleted=%s",
        result.count(ApplyOutcome.CREATED),
        result.count(ApplyOutcome.UPDATED),
        result.count(ApplyOutcome.REPLACED),
        result.count(ApplyOutcome.UNCHANGED),
        result.count(ApplyOutcome.DELETED),
    )
    return result


def refresh_state(
    *,
    client: BudgetsClient | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    default_account_id: str | None = None,
) -> RefreshResult:
    """Re-read every tracked notification and store what the remote side reports."""

    reconciler = _build_reconciler(client, default_account_id)
    result = RefreshResult()

    with _state_unit_of_work(unit_of_work_factory) as uow:
        repository = uow.notifications
        for tracked in repository.all():
            observed = reconciler.read(tracked.record)
            if observed is None:
                repository.remove(tracked.name)
                result.removed.append(tracked.name)
            else:
                repository.save(TrackedNotification(tracked.name, tracked.handle, observed))
                result.refreshed.append(tracked.name)
        uow.commit()

    log.info(
        "Finished refresh: refreshed=%s, removed=%s",
        len(result.refreshed),
        len(result.removed),
    )
    return result


def destroy_notifications(
    *,
    client: BudgetsClient | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    default_account_id: str | None = None,
) -> int:
    """Delete every tracked notification remotely and drop it from state."""

    reconciler = _build_reconciler(client, default_account_id)
    deleted = 0

    with _state_unit_of_work(unit_of_work_factory) as uow:
        repository = uow.notifications
        for tracked in repository.all():
            reconciler.delete(tracked.record)
            repository.remove(tracked.name)
            uow.commit()
            deleted += 1

    log.info("Finished destroy: deleted=%s", deleted)
    return deleted
