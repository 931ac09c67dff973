"""SQLAlchemy adapter package for budgetsync."""

from __future__ import annotations

from .mappings import (
    AddressSetType,
    UTCDateTime,
    create_all_tables,
    metadata,
    notification_state_table,
)
from .repositories import SqlAlchemyTrackedNotificationRepository
from .unit_of_work import SqlAlchemyStateUnitOfWork, StateSessionError, StateStore

__all__ = [
    "AddressSetType",
    "SqlAlchemyStateUnitOfWork",
    "SqlAlchemyTrackedNotificationRepository",
    "StateSessionError",
    "StateStore",
    "UTCDateTime",
    "create_all_tables",
    "metadata",
    "notification_state_table",
]
