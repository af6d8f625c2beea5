"""Pydantic models for the Discord REST payloads we read."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DiscordBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class DiscordUser(DiscordBaseModel):
    id: str
    username: str
    global_name: str | None = None


class DiscordGuild(DiscordBaseModel):
    id: str
    name: str | None = None


class DiscordRole(DiscordBaseModel):
    id: str
    name: str | None = None


class DiscordMember(DiscordBaseModel):
    user: DiscordUser | None = None
    nick: str | None = None
    roles: list[str] = Field(default_factory=list[str])

    @property
    def display_name(self) -> str | None:
        if self.nick:
            return self.nick
        if self.user is None:
            return None
        return self.user.global_name or self.user.username
