"""Level-triggered grant reconciliation.

Every pass recomputes the desired grant state from configuration, wallet links
and live holdings, then converges the access-control platform toward it. No
action queue or retry state survives a pass: a failed or missed pass heals on
the next one.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from rolesync.domain.errors import ActuationError, NotFoundError, UpstreamError

from .contracts import GrantAction, GrantDecision, PassResult, decide

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from rolesync.domain.model import Community, CommunityConfig, Criterion, Grant, MemberLink
    from rolesync.domain.model.enums import GrantPolicy
    from rolesync.domain.ports import AccessControl, ReconciliationUnitOfWork

    from .evaluator import CriterionEvaluator

log = getLogger(__name__)

DEFAULT_MEMBER_CONCURRENCY = 8


@dataclass(slots=True)
class Reconciler:
    """Scan configured communities and apply grant/revoke decisions per member."""

    access_control: AccessControl
    evaluator: CriterionEvaluator
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork]
    member_concurrency: int = DEFAULT_MEMBER_CONCURRENCY

    async def run_pass(self) -> PassResult:
        """Run one full pass over every stored community configuration."""

        with self.unit_of_work_factory() as uow:
            configs = uow.repositories.communities.list_all()
            links = uow.repositories.member_links.list_all()

        log.info(
            "Starting reconciliation pass: communities=%s, linked_members=%s",
            len(configs),
            len(links),
        )
        result = PassResult()
        for config in configs:
            await self.reconcile_community(config, links, result=result)
        log.info("Finished reconciliation pass: %s", result.summary())
        return result

    async def reconcile_community(
        self,
        config: CommunityConfig,
        links: Sequence[MemberLink],
        *,
        result: PassResult | None = None,
    ) -> PassResult:
        if result is None:
            result = PassResult()
        result.communities += 1

        try:
            community = await self.access_control.get_community(config.community_id)
        except (NotFoundError, UpstreamError) as exc:
            log.warning("Skipping community %s: %s", config.community_id, exc)
            result.skipped_communities += 1
            return result

        for grant_id, criteria in config.iter_grant_groups():
            try:
                grant = await self.access_control.get_grant(community.community_id, grant_id)
            except (NotFoundError, UpstreamError) as exc:
                log.warning(
                    "Skipping grant %s in community %s: %s",
                    grant_id,
                    community.community_id,
                    exc,
                )
                result.skipped_grants += 1
                continue
            await self._reconcile_grant(
                community, grant, criteria, config.grant_policy, links, result
            )
        return result

    async def _reconcile_grant(  # noqa: PLR0913
        self,
        community: Community,
        grant: Grant,
        criteria: Sequence[Criterion],
        policy: GrantPolicy,
        links: Sequence[MemberLink],
        result: PassResult,
    ) -> None:
        semaphore = asyncio.Semaphore(self.member_concurrency)

        async def bounded(link: MemberLink) -> None:
            async with semaphore:
                await self._reconcile_member(community, grant, criteria, policy, link, result)

        async with asyncio.TaskGroup() as group:
            for link in links:
                group.create_task(bounded(link))

    async def _reconcile_member(  # noqa: PLR0913
        self,
        community: Community,
        grant: Grant,
        criteria: Sequence[Criterion],
        policy: GrantPolicy,
        link: MemberLink,
        result: PassResult,
    ) -> None:
        community_id = community.community_id
        try:
            member = await self.access_control.get_member(community_id, link.member_id)
        except NotFoundError:
            log.debug("Member %s is not in community %s", link.member_id, community_id)
            result.skipped_members += 1
            return
        except UpstreamError as exc:
            log.warning(
                "Skipping member %s in community %s: lookup failed: %s",
                link.member_id,
                community_id,
                exc,
            )
            result.skipped_members += 1
            return

        satisfied = await self.evaluator.evaluate_grant(criteria, link.wallets, policy=policy)
        result.evaluated += 1

        decision = decide(currently_granted=member.holds(grant.grant_id), satisfied=satisfied)
        if decision is GrantDecision.KEEP:
            result.unchanged += 1
            return

        action = GrantAction(community_id, member.member_id, grant.grant_id, decision)
        try:
            if decision is GrantDecision.GRANT:
                await self.access_control.add_grant(community_id, member.member_id, grant.grant_id)
            else:
                await self.access_control.remove_grant(
                    community_id, member.member_id, grant.grant_id
                )
        except (ActuationError, NotFoundError, UpstreamError) as exc:
            log.error(
                "Could not %s %s for %s: %s",
                decision,
                grant.name or grant.grant_id,
                member.label,
                exc,
            )
            result.failed += 1
            result.actions.append(
                GrantAction(community_id, member.member_id, grant.grant_id, decision, applied=False)
            )
            return

        result.actions.append(action)
        if decision is GrantDecision.GRANT:
            log.info(
                "Granted role %s to %s in %s",
                grant.name or grant.grant_id,
                member.label,
                community_id,
            )
        else:
            log.info(
                "Revoked role %s from %s in %s",
                grant.name or grant.grant_id,
                member.label,
                community_id,
            )
