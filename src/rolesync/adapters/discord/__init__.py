"""Discord access-control adapter."""

from __future__ import annotations

from .client import DiscordAccessControl
from .schema import DiscordGuild, DiscordMember, DiscordRole, DiscordUser

__all__ = [
    "DiscordAccessControl",
    "DiscordGuild",
    "DiscordMember",
    "DiscordRole",
    "DiscordUser",
]
