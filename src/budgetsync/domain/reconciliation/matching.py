"""Identity resolution for notifications without a server-issued identifier.

A notification is identified by its comparison key alone. The remote service omits
``ThresholdType`` on output when it equals the default, so descriptors are always
default-filled before they are compared.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from budgetsync.domain.model import NotificationDescriptor


def normalize_notification(notification: NotificationDescriptor) -> NotificationDescriptor:
    return notification.with_defaults()


def is_same_notification(
    candidate: NotificationDescriptor,
    expected: NotificationDescriptor,
) -> bool:
    """Exact equality of both normalized comparison keys (no float tolerance)."""

    return (
        normalize_notification(candidate).comparison_key
        == normalize_notification(expected).comparison_key
    )


def find_match(
    remote: Iterable[NotificationDescriptor],
    desired: NotificationDescriptor,
) -> NotificationDescriptor | None:
    """Return the first normalized remote descriptor matching ``desired``.

    Duplicate comparison keys under one budget are not detected; the first one wins.
    """

    expected = normalize_notification(desired).comparison_key
    for candidate in remote:
        normalized = normalize_notification(candidate)
        if normalized.comparison_key == expected:
            return normalized
    return None
