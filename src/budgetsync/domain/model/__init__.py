"""Budget notification domain model."""

from __future__ import annotations

from .enums import (
    DEFAULT_THRESHOLD_TYPE,
    ComparisonOperator,
    NotificationType,
    SubscriptionType,
    ThresholdType,
)
from .notification import (
    ComparisonKey,
    DeclaredNotification,
    LocalHandle,
    NotificationDescriptor,
    ReconciliationRecord,
    SubscriberEntry,
    SubscriberSet,
    TrackedNotification,
)

__all__ = [
    "DEFAULT_THRESHOLD_TYPE",
    "ComparisonKey",
    "ComparisonOperator",
    "DeclaredNotification",
    "LocalHandle",
    "NotificationDescriptor",
    "NotificationType",
    "ReconciliationRecord",
    "SubscriberEntry",
    "SubscriberSet",
    "SubscriptionType",
    "ThresholdType",
    "TrackedNotification",
]
