"""Budgeting service configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float_env, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

BUDGETS_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class BudgetsConfig:
    """Holds budgeting service endpoint and caller account values."""

    endpoint_url: str
    account_id: str
    resilience: ResilienceConfig


def get_budgets_config(*, resilience: ResilienceConfig | None = None) -> BudgetsConfig:
    values = require_env_vars(("BUDGETS_ENDPOINT_URL", "BUDGETS_ACCOUNT_ID"))
    endpoint_url = values["BUDGETS_ENDPOINT_URL"]
    return BudgetsConfig(
        endpoint_url=endpoint_url,
        account_id=values["BUDGETS_ACCOUNT_ID"],
        resilience=resilience
        or ResilienceConfig(
            name="budgets",
            base_url=endpoint_url,
            timeout_seconds=optional_float_env("BUDGETS_TIMEOUT_SECONDS", BUDGETS_TIMEOUT_SECONDS),
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        ),
    )
