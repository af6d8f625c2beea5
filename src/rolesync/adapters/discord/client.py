"""Discord REST implementation of the access-control port."""

from __future__ import annotations

from http import HTTPStatus
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import TypeAdapter, ValidationError

from rolesync.adapters.http_resilience import ResilientClient
from rolesync.config.errors import ConfigurationError
from rolesync.domain.errors import ActuationError, NotFoundError, UpstreamError
from rolesync.domain.model import Community, Grant, Member

from .schema import DiscordGuild, DiscordMember, DiscordRole, DiscordUser

if TYPE_CHECKING:
    from types import TracebackType

    from rolesync.adapters.http_resilience import ClientFactory
    from rolesync.config.discord import DiscordConfig
    from rolesync.domain.ports import AccessControl

log = getLogger(__name__)

_ROLES = TypeAdapter(list[DiscordRole])
_AUDIT_LOG_REASON = "rolesync holdings reconciliation"


class DiscordAccessControl:
    """Guilds are communities, roles are grants, guild members are members."""

    def __init__(
        self,
        *,
        config: DiscordConfig,
        client_factory: ClientFactory | None = None,
    ) -> None:
        resilience = config.resilience.with_headers({"Authorization": f"Bot {config.bot_token}"})
        self._client = (client_factory or ResilientClient)(resilience)
        self.bot_user: DiscordUser | None = None

    async def __aenter__(self) -> DiscordAccessControl:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def wait_until_ready(self) -> None:
        """Verify the bot token before the first pass."""

        try:
            payload = await self._get_json("/users/@me", kind="bot user", identifier="@me")
            self.bot_user = DiscordUser.model_validate(payload)
        except (UpstreamError, NotFoundError, ValidationError) as exc:
            raise ConfigurationError(f"Discord handshake failed: {exc}") from exc
        log.info("Logged in to Discord as %s", self.bot_user.username)

    async def get_community(self, community_id: str) -> Community:
        payload = await self._get_json(
            f"/guilds/{community_id}", kind="community", identifier=community_id
        )
        guild = self._validate(DiscordGuild, payload)
        return Community(community_id=guild.id, name=guild.name)

    async def get_grant(self, community_id: str, grant_id: str) -> Grant:
        payload = await self._get_json(
            f"/guilds/{community_id}/roles", kind="community", identifier=community_id
        )
        try:
            roles = _ROLES.validate_python(payload)
        except ValidationError as exc:
            raise UpstreamError(f"Malformed role list for guild {community_id}") from exc
        for role in roles:
            if role.id == grant_id:
                return Grant(grant_id=role.id, name=role.name)
        raise NotFoundError("grant", grant_id)

    async def get_member(self, community_id: str, member_id: str) -> Member:
        payload = await self._get_json(
            f"/guilds/{community_id}/members/{member_id}", kind="member", identifier=member_id
        )
        member = self._validate(DiscordMember, payload)
        return Member(
            member_id=member.user.id if member.user else member_id,
            display_name=member.display_name,
            grant_ids=frozenset(member.roles),
        )

    async def member_has_grant(self, community_id: str, member_id: str, grant_id: str) -> bool:
        member = await self.get_member(community_id, member_id)
        return member.holds(grant_id)

    async def add_grant(self, community_id: str, member_id: str, grant_id: str) -> None:
        await self._actuate("PUT", community_id, member_id, grant_id)

    async def remove_grant(self, community_id: str, member_id: str, grant_id: str) -> None:
        await self._actuate("DELETE", community_id, member_id, grant_id)

    async def _actuate(self, method: str, community_id: str, member_id: str, grant_id: str) -> None:
        path = f"/guilds/{community_id}/members/{member_id}/roles/{grant_id}"
        try:
            response = await self._client.request(
                method, path, headers={"X-Audit-Log-Reason": _AUDIT_LOG_REASON}
            )
        except httpx.HTTPError as exc:
            raise ActuationError(f"{method} {path} failed: {exc}") from exc
        if not response.is_success:
            raise ActuationError(f"{method} {path} returned HTTP {response.status_code}")

    async def _get_json(self, path: str, *, kind: str, identifier: str) -> object:
        try:
            response = await self._client.get(path)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"GET {path} failed: {exc}") from exc
        if response.status_code == HTTPStatus.NOT_FOUND:
            raise NotFoundError(kind, identifier)
        if not response.is_success:
            raise UpstreamError(
                f"GET {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"GET {path} returned a non-JSON body") from exc

    @staticmethod
    def _validate[TModel: DiscordGuild | DiscordMember](
        model: type[TModel], payload: object
    ) -> TModel:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise UpstreamError(f"Malformed Discord {model.__name__} payload") from exc


if TYPE_CHECKING:
    from rolesync.config.discord import DiscordConfig as _Config
    from rolesync.config.discord import default_discord_resilience as _resilience

    _access_check: AccessControl = DiscordAccessControl(
        config=_Config(bot_token="", resilience=_resilience())
    )
