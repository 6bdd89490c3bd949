"""Application configuration helpers."""

from __future__ import annotations

from .discord import DiscordConfig, GuildRoleIds, default_discord_resilience, get_discord_config
from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import (
    ApiConfig,
    StoreRetryPolicy,
    SyncConfig,
    get_api_config,
    get_sync_config,
)

__all__ = [
    "ApiConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "DiscordConfig",
    "GuildRoleIds",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "StoreRetryPolicy",
    "SyncConfig",
    "configure_logging",
    "default_discord_resilience",
    "get_api_config",
    "get_database_config",
    "get_discord_config",
    "get_storage_config",
    "get_sync_config",
    "require_env_var",
    "require_env_vars",
]
