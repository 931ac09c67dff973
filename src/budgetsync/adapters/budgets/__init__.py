"""Public interface for the budgeting service adapter."""

from __future__ import annotations

from .client import HttpBudgetsClient
from .schema import (
    DescribeNotificationsResponse,
    DescribeSubscribersResponse,
    ErrorResponse,
    NotificationPayload,
    SubscriberPayload,
)
from .translator import to_notification, to_subscriber

__all__ = [
    "DescribeNotificationsResponse",
    "DescribeSubscribersResponse",
    "ErrorResponse",
    "HttpBudgetsClient",
    "NotificationPayload",
    "SubscriberPayload",
    "to_notification",
    "to_subscriber",
]
