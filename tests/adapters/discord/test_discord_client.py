from __future__ import annotations

import asyncio
from collections.abc import Callable  # noqa: TC003
from typing import TYPE_CHECKING

import httpx
import pytest

from rolesync.adapters.discord import DiscordAccessControl
from rolesync.adapters.http_resilience import ResilienceConfig, ResilientClient
from rolesync.config import ConfigurationError
from rolesync.config.discord import DiscordConfig, default_discord_resilience
from rolesync.domain.errors import ActuationError, NotFoundError, UpstreamError
from rolesync.domain.model import (
    CollectionRequirement,
    CommunityConfig,
    Criterion,
    MemberLink,
    Wallet,
)
from rolesync.domain.reconciliation import CriterionEvaluator, Reconciler
from tests.helpers.holdings import FakeCatalog, FakeHoldings

if TYPE_CHECKING:
    from rolesync.adapters.sqlalchemy import SqlAlchemyUnitOfWork


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            base_url=resilience.base_url or "",
            headers=dict(resilience.default_headers or {}),
            transport=httpx.MockTransport(async_handler),
        )
        return client

    return factory


def _access(handler: Callable[[httpx.Request], httpx.Response]) -> DiscordAccessControl:
    return DiscordAccessControl(
        config=DiscordConfig(bot_token="token", resilience=default_discord_resilience()),
        client_factory=_make_client_factory(handler),
    )


MEMBER = {
    "user": {"id": "42", "username": "shibe", "global_name": "Shibe"},
    "nick": None,
    "roles": ["r1", "r2"],
}


def test_handshake_uses_bot_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "1", "username": "rolesync-bot"})

    access = _access(handler)
    asyncio.run(access.wait_until_ready())

    assert seen[0].url.path == "/api/v10/users/@me"
    assert seen[0].headers["Authorization"] == "Bot token"
    assert seen[0].headers["User-Agent"].startswith("DiscordBot")
    assert access.bot_user is not None
    assert access.bot_user.username == "rolesync-bot"


def test_handshake_failure_is_a_configuration_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "401: Unauthorized"})

    with pytest.raises(ConfigurationError):
        asyncio.run(_access(handler).wait_until_ready())


def test_get_member_maps_roles_and_display_name() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v10/guilds/g1/members/42"
        return httpx.Response(200, json=MEMBER)

    member = asyncio.run(_access(handler).get_member("g1", "42"))

    assert member.member_id == "42"
    assert member.display_name == "Shibe"
    assert member.grant_ids == frozenset({"r1", "r2"})


def test_member_has_grant() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=MEMBER)

    access = _access(handler)

    assert asyncio.run(access.member_has_grant("g1", "42", "r1"))
    assert not asyncio.run(access.member_has_grant("g1", "42", "r9"))


def test_missing_member_is_not_found() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Unknown Member", "code": 10007})

    with pytest.raises(NotFoundError) as excinfo:
        asyncio.run(_access(handler).get_member("g1", "42"))

    assert excinfo.value.kind == "member"


def test_get_grant_finds_role_in_guild_list() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v10/guilds/g1/roles"
        return httpx.Response(200, json=[{"id": "r1", "name": "Holder"}, {"id": "r2"}])

    access = _access(handler)

    grant = asyncio.run(access.get_grant("g1", "r1"))
    assert grant.name == "Holder"
    with pytest.raises(NotFoundError):
        asyncio.run(access.get_grant("g1", "r404"))


def test_get_community_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/gone"):
            return httpx.Response(404, json={"message": "Unknown Guild"})
        if request.url.path.endswith("/g1"):
            return httpx.Response(200, json={"id": "g1", "name": "Doge Club"})
        return httpx.Response(503, text="unavailable")

    access = _access(handler)

    assert asyncio.run(access.get_community("g1")).name == "Doge Club"
    with pytest.raises(NotFoundError):
        asyncio.run(access.get_community("gone"))
    with pytest.raises(UpstreamError):
        asyncio.run(access.get_community("flaky"))


def test_add_and_remove_grant_use_role_endpoint() -> None:
    calls: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        return httpx.Response(204)

    access = _access(handler)
    asyncio.run(access.add_grant("g1", "42", "r1"))
    asyncio.run(access.remove_grant("g1", "42", "r1"))

    assert calls == [
        ("PUT", "/api/v10/guilds/g1/members/42/roles/r1"),
        ("DELETE", "/api/v10/guilds/g1/members/42/roles/r1"),
    ]


def test_refused_actuation_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"message": "Missing Permissions", "code": 50013})

    with pytest.raises(ActuationError):
        asyncio.run(_access(handler).add_grant("g1", "42", "r1"))


def test_transport_failure_during_actuation_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ActuationError):
        asyncio.run(_access(handler).remove_grant("g1", "42", "r1"))


def test_pass_skips_guild_the_bot_was_removed_from(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    actuated: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v10")
        if path.startswith("/guilds/gone"):
            return httpx.Response(403, json={"message": "Missing Access", "code": 50001})
        if request.method == "PUT":
            actuated.append((request.method, path))
            return httpx.Response(204)
        if path == "/guilds/ok":
            return httpx.Response(200, json={"id": "ok", "name": "Doge Club"})
        if path == "/guilds/ok/roles":
            return httpx.Response(200, json=[{"id": "r1", "name": "Holder"}])
        if path == "/guilds/ok/members/42":
            return httpx.Response(200, json={**MEMBER, "roles": []})
        return httpx.Response(404, json={"message": "Unknown"})

    with sqlite_unit_of_work() as uow:
        for community_id in ("gone", "ok"):
            uow.repositories.communities.upsert(
                CommunityConfig(community_id, (Criterion("r1", CollectionRequirement("dmb", 1)),))
            )
        uow.repositories.member_links.upsert(MemberLink("42", (Wallet("A1"),)))
        uow.commit()
    reconciler = Reconciler(
        access_control=_access(handler),
        evaluator=CriterionEvaluator(
            holdings=FakeHoldings(inscriptions={"A1": {"i1"}}),
            catalog=FakeCatalog({"dmb": {"i1"}}),
        ),
        unit_of_work_factory=sqlite_unit_of_work,
    )

    result = asyncio.run(reconciler.run_pass())

    assert result.skipped_communities == 1
    assert result.granted == 1
    assert actuated == [("PUT", "/guilds/ok/members/42/roles/r1")]
