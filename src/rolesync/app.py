"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import AsyncExitStack, asynccontextmanager
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from rolesync.adapters.catalog import JsonAssetCatalog
from rolesync.adapters.discord import DiscordAccessControl
from rolesync.adapters.maestro import MaestroHoldingsClient, should_cache_payload
from rolesync.adapters.sqlalchemy import SqlAlchemyUnitOfWork, build_session_factory
from rolesync.config import (
    get_database_config,
    get_discord_config,
    get_maestro_config,
    get_storage_config,
    get_sync_config,
)
from rolesync.domain.errors import InvalidCriterionError
from rolesync.domain.model import (
    CollectionRequirement,
    CommunityConfig,
    GrantPolicy,
    Wallet,
    criteria_from_flat_record,
)
from rolesync.domain.ports.unit_of_work import ReconciliationUnitOfWork
from rolesync.domain.reconciliation import CriterionEvaluator, Reconciler
from rolesync.domain.scheduler import ReconciliationScheduler

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from decimal import Decimal

    from sqlalchemy.orm import Session, sessionmaker

    from rolesync.domain.model import MemberLink
    from rolesync.domain.ports import AccessControl, AssetCatalog, HoldingsSource
    from rolesync.domain.reconciliation import PassResult

UnitOfWorkFactory = Callable[[], ReconciliationUnitOfWork]


log = getLogger(__name__)


def build_unit_of_work_factory(
    session_factory: sessionmaker[Session] | None = None,
) -> UnitOfWorkFactory:
    """Bind the SQLAlchemy unit of work to the configured database."""

    factory = session_factory or build_session_factory(database_uri=get_database_config().uri)
    return partial(SqlAlchemyUnitOfWork, factory)


def build_catalog() -> JsonAssetCatalog:
    return JsonAssetCatalog(get_storage_config().collections_path())


@asynccontextmanager
async def _open_reconciler(
    *,
    access_control: AccessControl | None,
    holdings: HoldingsSource | None,
    catalog: AssetCatalog | None,
    unit_of_work_factory: UnitOfWorkFactory | None,
    member_concurrency: int | None,
) -> AsyncIterator[Reconciler]:
    # only clients created here are closed here
    async with AsyncExitStack() as stack:
        if holdings is None:
            holdings = await stack.enter_async_context(
                MaestroHoldingsClient(
                    config=get_maestro_config(cache_predicate=should_cache_payload)
                )
            )
        if access_control is None:
            access_control = await stack.enter_async_context(
                DiscordAccessControl(config=get_discord_config())
            )
        evaluator = CriterionEvaluator(holdings=holdings, catalog=catalog or build_catalog())
        yield Reconciler(
            access_control=access_control,
            evaluator=evaluator,
            unit_of_work_factory=unit_of_work_factory or build_unit_of_work_factory(),
            member_concurrency=member_concurrency or get_sync_config().member_concurrency,
        )


async def reconcile_once_async(
    *,
    access_control: AccessControl | None = None,
    holdings: HoldingsSource | None = None,
    catalog: AssetCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    member_concurrency: int | None = None,
) -> PassResult:
    async with _open_reconciler(
        access_control=access_control,
        holdings=holdings,
        catalog=catalog,
        unit_of_work_factory=unit_of_work_factory,
        member_concurrency=member_concurrency,
    ) as reconciler:
        await reconciler.access_control.wait_until_ready()
        return await reconciler.run_pass()


def reconcile_once(
    *,
    access_control: AccessControl | None = None,
    holdings: HoldingsSource | None = None,
    catalog: AssetCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    member_concurrency: int | None = None,
) -> PassResult:
    """Run a single reconciliation pass using the configured adapters."""

    return asyncio.run(
        reconcile_once_async(
            access_control=access_control,
            holdings=holdings,
            catalog=catalog,
            unit_of_work_factory=unit_of_work_factory,
            member_concurrency=member_concurrency,
        )
    )


async def serve_async(  # noqa: PLR0913
    *,
    interval_seconds: float | None = None,
    stop: asyncio.Event | None = None,
    max_passes: int | None = None,
    access_control: AccessControl | None = None,
    holdings: HoldingsSource | None = None,
    catalog: AssetCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    member_concurrency: int | None = None,
) -> int:
    interval = interval_seconds or get_sync_config().interval_seconds
    async with _open_reconciler(
        access_control=access_control,
        holdings=holdings,
        catalog=catalog,
        unit_of_work_factory=unit_of_work_factory,
        member_concurrency=member_concurrency,
    ) as reconciler:
        scheduler = ReconciliationScheduler(
            run_pass=reconciler.run_pass,
            interval_seconds=interval,
            ready=reconciler.access_control.wait_until_ready,
        )
        return await scheduler.run(stop=stop, max_passes=max_passes)


def serve(
    *,
    interval_seconds: float | None = None,
    max_passes: int | None = None,
) -> int:
    """Reconcile every ``interval_seconds`` until interrupted."""

    log.info("Starting rolesync service: interval=%s", interval_seconds or "config default")
    return asyncio.run(serve_async(interval_seconds=interval_seconds, max_passes=max_passes))


def add_criteria(  # noqa: PLR0913
    community_id: str,
    target_grant: str,
    *,
    collection_name: str | None = None,
    required_count: int | None = None,
    ticker: str | None = None,
    token_amount: Decimal | str | None = None,
    dune_id: str | None = None,
    dune_amount: Decimal | str | None = None,
    replace: bool = False,
    catalog: AssetCatalog | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> CommunityConfig:
    """Store criteria for ``target_grant``; ``replace`` drops that grant's earlier criteria."""

    criteria = criteria_from_flat_record(
        target_grant,
        collection_name=collection_name,
        required_count=required_count,
        ticker=ticker,
        token_amount=token_amount,
        dune_id=dune_id,
        dune_amount=dune_amount,
    )
    effective_catalog = catalog or build_catalog()
    for criterion in criteria:
        requirement = criterion.requirement
        if isinstance(requirement, CollectionRequirement) and not effective_catalog.has_collection(
            requirement.collection_name
        ):
            raise InvalidCriterionError(
                f"Unknown collection {requirement.collection_name!r}: provision its file first"
            )

    effective_uow = unit_of_work_factory or build_unit_of_work_factory()
    with effective_uow() as uow:
        communities = uow.repositories.communities
        if replace:
            existing = communities.get(community_id) or CommunityConfig(community_id)
            kept = tuple(c for c in existing.criteria if c.target_grant != criteria[0].target_grant)
            stored = CommunityConfig(
                community_id=community_id,
                criteria=kept + criteria,
                grant_policy=existing.grant_policy,
            )
            communities.upsert(stored)
        else:
            stored = communities.append_criteria(community_id, criteria)
        uow.commit()

    log.info(
        "Stored %s criteria for community %s: %s",
        len(criteria),
        community_id,
        "; ".join(c.describe() for c in criteria),
    )
    return stored


def list_criteria(
    community_id: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> CommunityConfig | None:
    effective_uow = unit_of_work_factory or build_unit_of_work_factory()
    with effective_uow() as uow:
        return uow.repositories.communities.get(community_id)


def set_grant_policy(
    community_id: str,
    policy: GrantPolicy | str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> CommunityConfig:
    try:
        effective_policy = GrantPolicy(policy)
    except ValueError as exc:
        raise ValueError(f"Unknown grant policy: {policy}") from exc

    effective_uow = unit_of_work_factory or build_unit_of_work_factory()
    with effective_uow() as uow:
        stored = uow.repositories.communities.set_grant_policy(community_id, effective_policy)
        uow.commit()
    log.info("Grant policy for community %s is now %s", community_id, effective_policy)
    return stored


def link_wallet(
    member_id: str,
    address: str,
    *,
    provider: str = "unknown",
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> MemberLink:
    """Attach a wallet address to a member; the next pass picks it up."""

    member = member_id.strip()
    wallet_address = address.strip()
    if not member or not wallet_address:
        raise ValueError("Member id and wallet address must be non-empty")

    effective_uow = unit_of_work_factory or build_unit_of_work_factory()
    with effective_uow() as uow:
        link = uow.repositories.member_links.link_wallet(
            member, Wallet(address=wallet_address, provider=provider.strip() or "unknown")
        )
        uow.commit()
    log.info(
        "Linked wallet %s to member %s (%s wallets)", wallet_address, member, len(link.wallets)
    )
    return link
