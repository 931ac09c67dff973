"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select, update

from budgetsync.adapters.sqlalchemy.mappings import notification_state_table
from budgetsync.domain.model import (
    LocalHandle,
    NotificationDescriptor,
    ReconciliationRecord,
    SubscriberSet,
    SubscriptionType,
    TrackedNotification,
)

if TYPE_CHECKING:
    from sqlalchemy import Row
    from sqlalchemy.orm import Session


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SqlAlchemyTrackedNotificationRepository:
    def __init__(self, session: Session, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self.session = session
        self._clock = clock

    def get(self, name: str) -> TrackedNotification | None:
        stmt = select(notification_state_table).where(notification_state_table.c.name == name)
        row = self.session.execute(stmt).one_or_none()
        return _row_to_tracked(row) if row is not None else None

    def all(self) -> list[TrackedNotification]:
        stmt = select(notification_state_table).order_by(notification_state_table.c.name)
        return [_row_to_tracked(row) for row in self.session.execute(stmt)]

    def save(self, tracked: TrackedNotification) -> None:
        values = _tracked_to_values(tracked)
        values["updated_at"] = self._clock()
        exists_stmt = select(notification_state_table.c.name).where(
            notification_state_table.c.name == tracked.name
        )
        if self.session.execute(exists_stmt).scalar_one_or_none() is None:
            self.session.execute(insert(notification_state_table).values(**values))
            return
        self.session.execute(
            update(notification_state_table)
            .where(notification_state_table.c.name == tracked.name)
            .values(**values)
        )

    def remove(self, name: str) -> None:
        self.session.execute(
            delete(notification_state_table).where(notification_state_table.c.name == name)
        )


def _tracked_to_values(tracked: TrackedNotification) -> dict[str, object]:
    record = tracked.record
    notification = record.notification
    return {
        "name": tracked.name,
        "handle": tracked.handle,
        "budget_name": record.budget_name,
        "account_id": record.account_id,
        "comparison_operator": notification.comparison_operator,
        "threshold": notification.threshold,
        "threshold_type": notification.threshold_type,
        "notification_type": notification.notification_type,
        "email_addresses": record.subscribers.addresses(SubscriptionType.EMAIL),
        "sns_topic_arns": record.subscribers.addresses(SubscriptionType.SNS),
    }


def _row_to_tracked(row: Row[tuple[object, ...]]) -> TrackedNotification:
    mapping = row._mapping  # noqa: SLF001
    record = ReconciliationRecord(
        budget_name=mapping["budget_name"],
        account_id=mapping["account_id"],
        notification=NotificationDescriptor(
            comparison_operator=mapping["comparison_operator"],
            threshold=mapping["threshold"],
            threshold_type=mapping["threshold_type"],
            notification_type=mapping["notification_type"],
        ),
        subscribers=SubscriberSet.of(
            email=mapping["email_addresses"],
            sns=mapping["sns_topic_arns"],
        ),
    )
    return TrackedNotification(
        name=mapping["name"],
        handle=LocalHandle(mapping["handle"]),
        record=record,
    )

