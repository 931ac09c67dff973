"""Reconciliation of declared budget notifications against the remote service."""

from __future__ import annotations

from .diffing import AddressDiff, diff_addresses, diff_subscribers
from .engine import HandleFactory, NotificationReconciler, mint_handle
from .matching import find_match, is_same_notification, normalize_notification

__all__ = [
    "AddressDiff",
    "HandleFactory",
    "NotificationReconciler",
    "diff_addresses",
    "diff_subscribers",
    "find_match",
    "is_same_notification",
    "mint_handle",
    "normalize_notification",
]
