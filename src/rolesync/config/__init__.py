"""Application configuration helpers."""

from __future__ import annotations

from .discord import DiscordConfig, get_discord_config
from .env import optional_env, positive_float_env, positive_int_env, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging, parse_log_level
from .maestro import MaestroConfig, get_maestro_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "DiscordConfig",
    "MaestroConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "get_database_config",
    "get_discord_config",
    "get_maestro_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env",
    "parse_log_level",
    "positive_float_env",
    "positive_int_env",
    "require_env_vars",
]
