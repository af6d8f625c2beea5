"""Fakes for the holdings source and asset catalog ports."""

from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import TYPE_CHECKING

from rolesync.domain.errors import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


class FakeHoldings:
    """Holdings keyed by address; anything not configured is held at zero."""

    def __init__(
        self,
        *,
        inscriptions: Mapping[str, Iterable[str]] | None = None,
        tokens: Mapping[tuple[str, str], Decimal | int | str] | None = None,
        dunes: Mapping[tuple[str, str], Decimal | int | str] | None = None,
    ) -> None:
        self.inscriptions = {
            address: frozenset(ids) for address, ids in (inscriptions or {}).items()
        }
        self.tokens = {key: Decimal(value) for key, value in (tokens or {}).items()}
        self.dunes = {key: Decimal(value) for key, value in (dunes or {}).items()}
        self.calls: Counter[tuple[str, str]] = Counter()

    async def fetch_held_asset_identifiers(self, address: str) -> frozenset[str]:
        self.calls["inscriptions", address] += 1
        return self.inscriptions.get(address, frozenset())

    async def fetch_token_balance(self, address: str, ticker: str) -> Decimal:
        self.calls["token", address] += 1
        return self.tokens.get((address, ticker), Decimal(0))

    async def fetch_dune_balance(self, address: str, dune_id: str) -> Decimal:
        self.calls["dune", address] += 1
        return self.dunes.get((address, dune_id), Decimal(0))


class FakeCatalog:
    def __init__(self, collections: Mapping[str, Iterable[str]] | None = None) -> None:
        self.collections = {name: frozenset(ids) for name, ids in (collections or {}).items()}

    def has_collection(self, name: str) -> bool:
        return name in self.collections

    def get_collection(self, name: str) -> frozenset[str]:
        try:
            return self.collections[name]
        except KeyError:
            raise NotFoundError("collection", name) from None
