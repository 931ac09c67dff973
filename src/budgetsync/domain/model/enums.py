"""Domain enums (pure, dependency-light).

Values match the budgeting service's wire values so adapters can pass them through.
"""

from __future__ import annotations

from enum import StrEnum


class ComparisonOperator(StrEnum):
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    EQUAL_TO = "EQUAL_TO"


class ThresholdType(StrEnum):
    PERCENTAGE = "PERCENTAGE"
    ABSOLUTE_VALUE = "ABSOLUTE_VALUE"


class NotificationType(StrEnum):
    ACTUAL = "ACTUAL"
    FORECASTED = "FORECASTED"


class SubscriptionType(StrEnum):
    """Subscriber kind: direct email or topic broadcast."""

    EMAIL = "EMAIL"
    SNS = "SNS"


DEFAULT_THRESHOLD_TYPE = ThresholdType.PERCENTAGE
