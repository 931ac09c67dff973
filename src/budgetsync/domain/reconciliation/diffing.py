"""Minimal add/remove sets between two subscriber sets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Set as AbstractSet

    from budgetsync.domain.model import SubscriberSet, SubscriptionType


@dataclass(frozen=True, slots=True)
class AddressDiff:
    to_remove: frozenset[str] = frozenset()
    to_add: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.to_remove and not self.to_add


def diff_addresses(previous: AbstractSet[str], desired: AbstractSet[str]) -> AddressDiff:
    return AddressDiff(
        to_remove=frozenset(previous - desired),
        to_add=frozenset(desired - previous),
    )


def diff_subscribers(
    previous: SubscriberSet,
    desired: SubscriberSet,
) -> dict[SubscriptionType, AddressDiff]:
    """Diff per kind over every kind present on either side; unchanged kinds are omitted."""

    diffs: dict[SubscriptionType, AddressDiff] = {}
    for kind in sorted(previous.kinds | desired.kinds):
        diff = diff_addresses(previous.addresses(kind), desired.addresses(kind))
        if not diff.is_empty:
            diffs[kind] = diff
    return diffs
