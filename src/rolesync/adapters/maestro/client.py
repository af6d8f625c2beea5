"""HTTP client for the Maestro address holdings endpoints."""

from __future__ import annotations

import asyncio
from decimal import Decimal
from logging import getLogger
from typing import TYPE_CHECKING, Literal
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from rolesync.adapters.http_resilience import ResilientClient
from rolesync.domain.errors import UpstreamError

from .schema import BalancesResponse, UtxoPage

if TYPE_CHECKING:
    from types import TracebackType

    from rolesync.adapters.http_resilience import ClientFactory
    from rolesync.config.maestro import MaestroConfig
    from rolesync.domain.ports import HoldingsSource

log = getLogger(__name__)

API_KEY_HEADER = "api-key"
# guards against an upstream that keeps handing back cursors
MAX_UTXO_PAGES = 1000

BalanceEndpoint = Literal["drc20", "dunes"]


def should_cache_payload(payload: object) -> bool:
    """Only successful ``{"data": ...}`` payloads are worth caching."""

    return isinstance(payload, dict) and "data" in payload


class MaestroHoldingsClient:
    """Holdings source backed by the Maestro indexer.

    Public ``fetch_*`` methods never raise for upstream trouble: any failure on
    any page yields the conservative "holds nothing" result and is logged.
    The ``_fetch_*`` helpers raise ``UpstreamError`` instead.
    """

    def __init__(
        self,
        *,
        config: MaestroConfig,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience.with_headers({API_KEY_HEADER: config.api_key})
        self._client = (client_factory or ResilientClient)(self._resilience)
        self._semaphore = asyncio.Semaphore(config.max_concurrency)

    async def __aenter__(self) -> MaestroHoldingsClient:
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

    async def fetch_held_asset_identifiers(self, address: str) -> frozenset[str]:
        try:
            return await self._fetch_held_asset_identifiers(address)
        except UpstreamError as exc:
            log.warning("Treating %s as holding no inscriptions: %s", address, exc)
            return frozenset()

    async def fetch_token_balance(self, address: str, ticker: str) -> Decimal:
        return await self._absorbing_balance(address, "drc20", ticker)

    async def fetch_dune_balance(self, address: str, dune_id: str) -> Decimal:
        return await self._absorbing_balance(address, "dunes", dune_id)

    async def _absorbing_balance(
        self, address: str, endpoint: BalanceEndpoint, key: str
    ) -> Decimal:
        try:
            return await self._fetch_balance(address, endpoint, key)
        except UpstreamError as exc:
            log.warning("Treating %s as holding no %s (%s): %s", address, key, endpoint, exc)
            return Decimal(0)

    async def _fetch_held_asset_identifiers(self, address: str) -> frozenset[str]:
        identifiers: set[str] = set()
        cursor: str | None = None
        for _ in range(MAX_UTXO_PAGES):
            params = {"cursor": cursor} if cursor is not None else None
            payload = await self._get_json(f"/addresses/{quote(address, safe='')}/utxos", params)
            try:
                page = UtxoPage.model_validate(payload)
            except ValidationError as exc:
                raise UpstreamError(f"Malformed utxo page for {address}") from exc
            identifiers |= page.inscription_ids()
            cursor = page.next_cursor
            if cursor is None:
                return frozenset(identifiers)
        raise UpstreamError(f"Gave up on {address} after {MAX_UTXO_PAGES} utxo pages")

    async def _fetch_balance(self, address: str, endpoint: BalanceEndpoint, key: str) -> Decimal:
        payload = await self._get_json(f"/addresses/{quote(address, safe='')}/{endpoint}", None)
        try:
            balances = BalancesResponse.model_validate(payload)
        except ValidationError as exc:
            raise UpstreamError(f"Malformed {endpoint} balances for {address}") from exc
        return balances.balance_of(key)

    async def _get_json(self, path: str, params: dict[str, str] | None) -> object:
        async with self._semaphore:
            try:
                response = await self._client.get(path, params=params)
            except httpx.TimeoutException as exc:
                raise UpstreamError(f"Timed out requesting {path}") from exc
            except httpx.HTTPError as exc:
                raise UpstreamError(f"Request to {path} failed: {exc}") from exc

        if not response.is_success:
            raise UpstreamError(
                f"Maestro returned HTTP {response.status_code} for {path}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(f"Maestro returned a non-JSON body for {path}") from exc
        if not isinstance(payload, dict):
            raise UpstreamError(f"Unexpected Maestro payload for {path}")
        return payload


if TYPE_CHECKING:
    from rolesync.config.maestro import MaestroConfig as _Config
    from rolesync.config.maestro import default_maestro_resilience as _resilience

    _holdings_check: HoldingsSource = MaestroHoldingsClient(
        config=_Config(api_key="", resilience=_resilience())
    )
