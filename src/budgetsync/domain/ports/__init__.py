"""Domain port definitions for adapters."""

from __future__ import annotations

from .budgets import BudgetsClient
from .persistence import StateUnitOfWork, TrackedNotificationRepository

__all__ = [
    "BudgetsClient",
    "StateUnitOfWork",
    "TrackedNotificationRepository",
]
