"""Value types describing a budget notification and its subscribers.

Notifications carry no server-issued identifier, so every type here is a frozen value
with structural equality. Updates build new values instead of mutating old ones.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NewType, TypeAlias

from budgetsync.domain.errors import ValidationError

from .enums import (
    DEFAULT_THRESHOLD_TYPE,
    ComparisonOperator,
    NotificationType,
    SubscriptionType,
    ThresholdType,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

LocalHandle = NewType("LocalHandle", str)

ComparisonKey: TypeAlias = tuple[ComparisonOperator, float, ThresholdType | None, NotificationType]


@dataclass(frozen=True, slots=True)
class NotificationDescriptor:
    """Identity-bearing attributes of a notification rule."""

    comparison_operator: ComparisonOperator
    threshold: float
    threshold_type: ThresholdType | None
    notification_type: NotificationType

    @property
    def comparison_key(self) -> ComparisonKey:
        return (
            self.comparison_operator,
            self.threshold,
            self.threshold_type,
            self.notification_type,
        )

    def with_defaults(self) -> NotificationDescriptor:
        """Return a copy with an omitted threshold type restored to its default."""

        if self.threshold_type is not None:
            return self
        return dataclasses.replace(self, threshold_type=DEFAULT_THRESHOLD_TYPE)

    def differs_from(self, other: NotificationDescriptor) -> bool:
        return self.with_defaults().comparison_key != other.with_defaults().comparison_key


@dataclass(frozen=True, slots=True)
class SubscriberEntry:
    address: str
    kind: SubscriptionType


@dataclass(frozen=True, slots=True)
class SubscriberSet:
    """Subscriber addresses grouped by kind.

    Kinds without addresses are dropped on construction, so ``{EMAIL: {a}}`` and
    ``{EMAIL: {a}, SNS: {}}`` compare equal.
    """

    by_kind: Mapping[SubscriptionType, frozenset[str]] = field(
        default_factory=dict[SubscriptionType, frozenset[str]]
    )

    def __post_init__(self) -> None:
        normalized = {
            SubscriptionType(kind): frozenset(addresses)
            for kind, addresses in self.by_kind.items()
            if addresses
        }
        object.__setattr__(self, "by_kind", normalized)

    @classmethod
    def of(
        cls,
        *,
        email: Iterable[str] = (),
        sns: Iterable[str] = (),
    ) -> SubscriberSet:
        return cls(
            {
                SubscriptionType.EMAIL: frozenset(email),
                SubscriptionType.SNS: frozenset(sns),
            }
        )

    @classmethod
    def from_entries(cls, entries: Iterable[SubscriberEntry]) -> SubscriberSet:
        grouped: dict[SubscriptionType, set[str]] = {}
        for entry in entries:
            grouped.setdefault(entry.kind, set()).add(entry.address)
        return cls({kind: frozenset(addresses) for kind, addresses in grouped.items()})

    def addresses(self, kind: SubscriptionType) -> frozenset[str]:
        return self.by_kind.get(kind, frozenset())

    @property
    def kinds(self) -> frozenset[SubscriptionType]:
        return frozenset(self.by_kind)

    @property
    def is_empty(self) -> bool:
        return not self.by_kind

    def entries(self) -> tuple[SubscriberEntry, ...]:
        """Return every subscriber, sorted by kind then address."""

        return tuple(
            SubscriberEntry(address=address, kind=kind)
            for kind in sorted(self.by_kind)
            for address in sorted(self.by_kind[kind])
        )

    def __iter__(self) -> Iterator[SubscriberEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        return sum(len(addresses) for addresses in self.by_kind.values())

    def __hash__(self) -> int:
        return hash(frozenset(self.by_kind.items()))


@dataclass(frozen=True, slots=True)
class ReconciliationRecord:
    """Desired or observed state of one notification under one budget."""

    budget_name: str
    account_id: str | None
    notification: NotificationDescriptor
    subscribers: SubscriberSet = field(default_factory=SubscriberSet)

    def with_account(self, account_id: str) -> ReconciliationRecord:
        if self.account_id == account_id:
            return self
        return dataclasses.replace(self, account_id=account_id)

    def require_subscribers(self) -> None:
        if self.subscribers.is_empty:
            raise ValidationError("at least one subscriber required")


@dataclass(frozen=True, slots=True)
class TrackedNotification:
    """Local bookkeeping entry linking a declared name to its last known record."""

    name: str
    handle: LocalHandle
    record: ReconciliationRecord


@dataclass(frozen=True, slots=True)
class DeclaredNotification:
    """Desired record under the unique name it is declared with."""

    name: str
    record: ReconciliationRecord
