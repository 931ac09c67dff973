"""Application configuration helpers."""

from __future__ import annotations

from .budgets import BudgetsConfig, get_budgets_config
from .env import optional_float_env, require_env_vars
from .errors import ConfigurationError, DeclarationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import DatabaseConfig, get_database_config, state_data_dir

__all__ = [
    "BudgetsConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "DeclarationError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "configure_logging",
    "get_budgets_config",
    "get_database_config",
    "optional_float_env",
    "require_env_vars",
    "state_data_dir",
]
