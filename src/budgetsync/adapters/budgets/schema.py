"""Pydantic models describing the budgeting service's JSON payloads."""

from __future__ import annotations

from collections.abc import Mapping
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, model_validator

from budgetsync.domain.model import ComparisonOperator, NotificationType, ThresholdType


class BudgetsBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_request(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NotificationPayload(BudgetsBaseModel):
    notification_type: NotificationType = Field(alias="NotificationType")
    comparison_operator: ComparisonOperator = Field(alias="ComparisonOperator")
    threshold: float = Field(alias="Threshold")
    # Omitted on output when it equals the service default (PERCENTAGE).
    threshold_type: ThresholdType | None = Field(default=None, alias="ThresholdType")
    notification_state: str | None = Field(default=None, alias="NotificationState")


class SubscriberPayload(BudgetsBaseModel):
    # Kept as a plain string so unknown subscription types survive validation.
    subscription_type: str = Field(alias="SubscriptionType")
    address: str = Field(alias="Address")


class PaginatedResponse(BudgetsBaseModel):
    next_token: str | None = Field(default=None, alias="NextToken")


class DescribeNotificationsResponse(PaginatedResponse):
    notifications: list[NotificationPayload] = Field(
        default_factory=list[NotificationPayload], alias="Notifications"
    )


class DescribeSubscribersResponse(PaginatedResponse):
    subscribers: list[SubscriberPayload] = Field(
        default_factory=list[SubscriberPayload], alias="Subscribers"
    )


class ErrorResponse(BudgetsBaseModel):
    type: str = Field(alias="__type")
    message: str | None = Field(default=None, alias="Message")

    @model_validator(mode="before")
    @classmethod
    def _accept_lowercase_message(cls, value: object) -> object:
        if isinstance(value, Mapping):
            mapping_value = cast(Mapping[str, object], value)
            if "message" in mapping_value and "Message" not in mapping_value:
                data: dict[str, object] = dict(mapping_value)
                data["Message"] = data.pop("message")
                return data
            return mapping_value
        return value

    @property
    def code(self) -> str:
        """Error code without the service namespace prefix (``ns#Code`` -> ``Code``)."""

        return self.type.rsplit("#", 1)[-1]
