"""Ports for querying wallet holdings and the static asset catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from decimal import Decimal


@runtime_checkable
class HoldingsSource(Protocol):
    """Read-only view of what a single wallet address holds.

    Implementations absorb upstream failures: an address that cannot be queried
    reports no identifiers and zero balances.
    """

    async def fetch_held_asset_identifiers(self, address: str) -> frozenset[str]: ...

    async def fetch_token_balance(self, address: str, ticker: str) -> Decimal: ...

    async def fetch_dune_balance(self, address: str, dune_id: str) -> Decimal: ...


@runtime_checkable
class AssetCatalog(Protocol):
    """Static mapping from collection name to the asset identifiers it contains."""

    def has_collection(self, name: str) -> bool: ...

    def get_collection(self, name: str) -> frozenset[str]: ...


__all__ = ["AssetCatalog", "HoldingsSource"]
