"""Pydantic models for declaration files."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from budgetsync.domain.model import (
    ComparisonOperator,
    DeclaredNotification,
    NotificationDescriptor,
    NotificationType,
    ReconciliationRecord,
    SubscriberSet,
    ThresholdType,
)

ACCOUNT_ID_PATTERN = r"^\d{12}$"


class DeclarationBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class NotificationDeclaration(DeclarationBaseModel):
    name: str = Field(min_length=1)
    budget_name: str = Field(min_length=1)
    account_id: str | None = Field(default=None, pattern=ACCOUNT_ID_PATTERN)
    comparison_operator: ComparisonOperator
    threshold: float
    threshold_type: ThresholdType
    notification_type: NotificationType
    subscriber_email_addresses: list[str] = Field(default_factory=list[str])
    subscriber_sns_topic_arns: list[str] = Field(default_factory=list[str])

    def to_domain(self) -> DeclaredNotification:
        record = ReconciliationRecord(
            budget_name=self.budget_name,
            account_id=self.account_id,
            notification=NotificationDescriptor(
                comparison_operator=self.comparison_operator,
                threshold=self.threshold,
                threshold_type=self.threshold_type,
                notification_type=self.notification_type,
            ),
            subscribers=SubscriberSet.of(
                email=self.subscriber_email_addresses,
                sns=self.subscriber_sns_topic_arns,
            ),
        )
        return DeclaredNotification(name=self.name, record=record)


class DeclarationDocument(DeclarationBaseModel):
    notifications: list[NotificationDeclaration] = Field(
        default_factory=list[NotificationDeclaration], alias="notification"
    )

    @model_validator(mode="after")
    def _unique_names(self) -> DeclarationDocument:
        seen: set[str] = set()
        duplicates: set[str] = set()
        for declaration in self.notifications:
            if declaration.name in seen:
                duplicates.add(declaration.name)
            seen.add(declaration.name)
        if duplicates:
            raise ValueError(f"Duplicate notification names: {', '.join(sorted(duplicates))}")
        return self
