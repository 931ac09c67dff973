"""SQLAlchemy table metadata for the local reconciliation state."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
)

from budgetsync.domain.model import ComparisonOperator, NotificationType, ThresholdType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.engine import Engine


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class AddressSetType(TypeDecorator[frozenset[str]]):
    """Store a set of subscriber addresses as a sorted JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Iterable[str] | None, dialect: Dialect) -> str:
        _ = dialect
        return json.dumps(sorted(value or ()))

    def process_result_value(self, value: str | None, dialect: Dialect) -> frozenset[str]:
        _ = dialect
        if value is None:
            return frozenset()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return frozenset()
        items = cast(list[Any], loaded)
        return frozenset(item for item in items if isinstance(item, str))


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

notification_state_table = Table(
    "notification_state",
    metadata,
    Column("name", String(255), primary_key=True),
    Column("handle", String(512), nullable=False),
    Column("budget_name", String(255), nullable=False),
    Column("account_id", String(32), nullable=True),
    Column(
        "comparison_operator",
        Enum(ComparisonOperator, native_enum=False, length=32),
        nullable=False,
    ),
    Column("threshold", Float(precision=53), nullable=False),
    Column("threshold_type", Enum(ThresholdType, native_enum=False, length=32), nullable=True),
    Column(
        "notification_type",
        Enum(NotificationType, native_enum=False, length=32),
        nullable=False,
    ),
    Column("email_addresses", AddressSetType(), nullable=False),
    Column("sns_topic_arns", AddressSetType(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    UniqueConstraint("handle"),
)


def create_all_tables(engine: Engine) -> None:
    metadata.create_all(engine)
