"""Discord access-control configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

DISCORD_API_BASE_URL = "https://discord.com/api/v10"
DISCORD_USER_AGENT = "DiscordBot (rolesync, 0.1)"


@dataclass(frozen=True, slots=True)
class DiscordConfig:
    bot_token: str
    resilience: ResilienceConfig


def default_discord_resilience(*, base_url: str = DISCORD_API_BASE_URL) -> ResilienceConfig:
    # grant state is read fresh every pass, so no response cache
    return ResilienceConfig(
        name="discord",
        base_url=base_url,
        timeout_seconds=10.0,
        ratelimit=RateLimit(max_calls=40, per_seconds=1.0),
        cache=None,
        default_headers={"User-Agent": DISCORD_USER_AGENT},
    )


def get_discord_config(*, resilience: ResilienceConfig | None = None) -> DiscordConfig:
    values = require_env_vars(("DISCORD_BOT_TOKEN",))
    base_url = optional_env("DISCORD_API_BASE_URL") or DISCORD_API_BASE_URL
    return DiscordConfig(
        bot_token=values["DISCORD_BOT_TOKEN"],
        resilience=resilience or default_discord_resilience(base_url=base_url),
    )
