"""Decide whether a member's wallets satisfy holding criteria."""

from __future__ import annotations

import asyncio
from decimal import Decimal
from logging import getLogger
from typing import TYPE_CHECKING

from rolesync.domain.errors import NotFoundError
from rolesync.domain.model import (
    CollectionRequirement,
    DuneRequirement,
    GrantPolicy,
    TokenRequirement,
    distinct_addresses,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from rolesync.domain.model import Criterion, Wallet
    from rolesync.domain.ports import AssetCatalog, HoldingsSource

log = getLogger(__name__)


class CriterionEvaluator:
    """Aggregate holdings across all of a member's wallets and compare to thresholds.

    Duplicate wallet addresses are queried and counted once. Holdings failures
    are already absorbed by the holdings source, so an unreachable wallet simply
    contributes nothing.
    """

    def __init__(self, *, holdings: HoldingsSource, catalog: AssetCatalog) -> None:
        self._holdings = holdings
        self._catalog = catalog

    async def is_satisfied(self, criterion: Criterion, wallets: Sequence[Wallet]) -> bool:
        addresses = distinct_addresses(wallets)
        if not addresses:
            return False

        requirement = criterion.requirement
        match requirement:
            case CollectionRequirement():
                held = await self._count_collection(requirement, addresses)
                return held >= requirement.required_count
            case TokenRequirement():
                total = await self._sum_balances(
                    addresses,
                    lambda address: self._holdings.fetch_token_balance(address, requirement.ticker),
                )
                return total >= requirement.required_amount
            case DuneRequirement():
                total = await self._sum_balances(
                    addresses,
                    lambda address: self._holdings.fetch_dune_balance(address, requirement.dune_id),
                )
                return total >= requirement.required_amount

    async def evaluate_grant(
        self,
        criteria: Sequence[Criterion],
        wallets: Sequence[Wallet],
        *,
        policy: GrantPolicy = GrantPolicy.ANY,
    ) -> bool:
        """Combine the criteria that share one target grant.

        ``ANY`` grants when at least one criterion is met, ``ALL`` only when every
        criterion is met. Evaluation stops at the first deciding criterion.
        """

        if not criteria or not wallets:
            return False
        for criterion in criteria:
            satisfied = await self.is_satisfied(criterion, wallets)
            if policy is GrantPolicy.ANY and satisfied:
                return True
            if policy is GrantPolicy.ALL and not satisfied:
                return False
        return policy is GrantPolicy.ALL

    async def _count_collection(
        self, requirement: CollectionRequirement, addresses: Sequence[str]
    ) -> int:
        try:
            catalog = self._catalog.get_collection(requirement.collection_name)
        except (NotFoundError, ValueError) as exc:
            log.warning("Collection %s unavailable: %s", requirement.collection_name, exc)
            return 0

        held_sets = await asyncio.gather(
            *(self._holdings.fetch_held_asset_identifiers(address) for address in addresses)
        )
        return sum(len(held & catalog) for held in held_sets)

    @staticmethod
    async def _sum_balances(
        addresses: Sequence[str], fetch: Callable[[str], Awaitable[Decimal]]
    ) -> Decimal:
        balances = await asyncio.gather(*(fetch(address) for address in addresses))
        return sum(balances, Decimal(0))
