from __future__ import annotations

import asyncio

import httpx

from rolesync.adapters.http_resilience import ResilientClient, build_retry
from rolesync.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy


def test_with_headers_merges_without_mutating() -> None:
    base = ResilienceConfig(name="upstream", default_headers={"User-Agent": "ua"})

    extended = base.with_headers({"Authorization": "Bot token"})

    assert base.default_headers == {"User-Agent": "ua"}
    assert extended.default_headers == {"User-Agent": "ua", "Authorization": "Bot token"}
    assert extended.name == "upstream"


def test_default_retry_policy_covers_role_changes_and_rate_limits() -> None:
    policy = RetryPolicy()

    assert {"PUT", "DELETE", "GET"} <= policy.allowed_methods
    assert "POST" not in policy.allowed_methods
    assert 429 in policy.status_forcelist
    assert build_retry(policy).total == policy.total


def test_uncached_client_is_plain_async_client() -> None:
    config = ResilienceConfig(
        name="discord",
        base_url="https://example.invalid/api",
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        default_headers={"User-Agent": "ua"},
    )

    async def scenario() -> httpx.AsyncClient:
        async with ResilientClient(config) as client:
            inner = client._client  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            assert inner.headers["User-Agent"] == "ua"
            assert str(inner.base_url) == "https://example.invalid/api/"
            return inner

    inner = asyncio.run(scenario())

    assert type(inner) is httpx.AsyncClient
    assert inner.is_closed
