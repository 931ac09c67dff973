"""Translate between budgeting service payloads and domain values."""

from __future__ import annotations

from logging import getLogger

from budgetsync.domain.model import NotificationDescriptor, SubscriberEntry, SubscriptionType

from .schema import NotificationPayload, SubscriberPayload

log = getLogger(__name__)


def to_notification_payload(notification: NotificationDescriptor) -> NotificationPayload:
    return NotificationPayload(
        notification_type=notification.notification_type,
        comparison_operator=notification.comparison_operator,
        threshold=notification.threshold,
        threshold_type=notification.threshold_type,
    )


def to_notification(payload: NotificationPayload) -> NotificationDescriptor:
    """Return the descriptor as the service reported it; defaults are not filled here."""

    return NotificationDescriptor(
        comparison_operator=payload.comparison_operator,
        threshold=payload.threshold,
        threshold_type=payload.threshold_type,
        notification_type=payload.notification_type,
    )


def to_subscriber_payload(subscriber: SubscriberEntry) -> SubscriberPayload:
    return SubscriberPayload(
        subscription_type=subscriber.kind.value,
        address=subscriber.address,
    )


def to_subscriber(payload: SubscriberPayload) -> SubscriberEntry | None:
    try:
        kind = SubscriptionType(payload.subscription_type)
    except ValueError:
        log.warning(
            "Ignoring subscriber %s with unsupported type %s",
            payload.address,
            payload.subscription_type,
        )
        return None
    return SubscriberEntry(address=payload.address, kind=kind)
