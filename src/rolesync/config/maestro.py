"""Maestro holdings API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env, positive_int_env, require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, ShouldCacheHook

MAESTRO_BASE_URL = "https://xdg-mainnet.gomaestro-api.org/v0"
MAESTRO_TIMEOUT_SECONDS = 10.0
MAESTRO_CACHE_TTL_SECONDS = 30.0
DEFAULT_HOLDINGS_CONCURRENCY = 8


@dataclass(frozen=True, slots=True)
class MaestroConfig:
    """Holds Maestro API credentials and client tuning."""

    api_key: str
    resilience: ResilienceConfig
    max_concurrency: int = DEFAULT_HOLDINGS_CONCURRENCY


def default_maestro_resilience(
    *,
    base_url: str = MAESTRO_BASE_URL,
    cache_predicate: ShouldCacheHook | None = None,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="maestro",
        base_url=base_url,
        timeout_seconds=MAESTRO_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        cache=CacheConfig(
            default_ttl_seconds=MAESTRO_CACHE_TTL_SECONDS,
            should_cache=cache_predicate,
        ),
    )


def get_maestro_config(
    *,
    resilience: ResilienceConfig | None = None,
    cache_predicate: ShouldCacheHook | None = None,
) -> MaestroConfig:
    values = require_env_vars(("MAESTRO_API_KEY",))
    base_url = optional_env("MAESTRO_BASE_URL") or MAESTRO_BASE_URL
    return MaestroConfig(
        api_key=values["MAESTRO_API_KEY"],
        resilience=resilience
        or default_maestro_resilience(base_url=base_url, cache_predicate=cache_predicate),
        max_concurrency=positive_int_env(
            "ROLESYNC_HOLDINGS_CONCURRENCY", DEFAULT_HOLDINGS_CONCURRENCY
        ),
    )
