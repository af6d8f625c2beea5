"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, cast

from sqlalchemy import delete, func, insert, select, update

from rolesync.adapters.sqlalchemy.mappings import (
    community_table,
    criterion_table,
    member_link_table,
    utcnow,
    wallet_table,
)
from rolesync.domain.errors import NotFoundError
from rolesync.domain.model import (
    CommunityConfig,
    Criterion,
    GrantPolicy,
    MemberLink,
    Wallet,
    build_requirement,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy import Row
    from sqlalchemy.orm import Session


def _criterion_from_row(row: Row[tuple[object, ...]]) -> Criterion:
    mapping = row._mapping  # noqa: SLF001
    return Criterion(
        target_grant=cast(str, mapping["target_grant"]),
        requirement=build_requirement(
            cast(str, mapping["asset_class"]),
            cast(str, mapping["asset_key"]),
            mapping["threshold"],  # pyright: ignore[reportArgumentType]
        ),
    )


class SqlAlchemyCommunityRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, community_id: str) -> CommunityConfig | None:
        policy = self.session.execute(
            select(community_table.c.grant_policy).where(
                community_table.c.community_id == community_id
            )
        ).scalar_one_or_none()
        if policy is None:
            return None
        return CommunityConfig(
            community_id=community_id,
            criteria=tuple(self._criteria_by_community([community_id])[community_id]),
            grant_policy=GrantPolicy(policy),
        )

    def list_all(self) -> list[CommunityConfig]:
        rows = self.session.execute(
            select(community_table.c.community_id, community_table.c.grant_policy).order_by(
                community_table.c.created_at, community_table.c.community_id
            )
        ).all()
        criteria = self._criteria_by_community([row.community_id for row in rows])
        return [
            CommunityConfig(
                community_id=row.community_id,
                criteria=tuple(criteria[row.community_id]),
                grant_policy=GrantPolicy(row.grant_policy),
            )
            for row in rows
        ]

    def upsert(self, config: CommunityConfig) -> None:
        """Replace the stored configuration for ``config.community_id``."""

        self._ensure_community(config.community_id, config.grant_policy)
        self.session.execute(
            update(community_table)
            .where(community_table.c.community_id == config.community_id)
            .values(grant_policy=config.grant_policy, updated_at=utcnow())
        )
        self.session.execute(
            delete(criterion_table).where(criterion_table.c.community_id == config.community_id)
        )
        self._insert_criteria(config.community_id, config.criteria, start=0)

    def append_criteria(
        self, community_id: str, criteria: Sequence[Criterion]
    ) -> CommunityConfig:
        """Append criteria after any already stored, creating the community if needed."""

        self._ensure_community(community_id, GrantPolicy.ANY)
        next_position = self.session.execute(
            select(func.coalesce(func.max(criterion_table.c.position) + 1, 0)).where(
                criterion_table.c.community_id == community_id
            )
        ).scalar_one()
        self._insert_criteria(community_id, criteria, start=int(next_position))
        self._touch(community_id)
        return self._reload(community_id)

    def set_grant_policy(self, community_id: str, policy: GrantPolicy) -> CommunityConfig:
        self._ensure_community(community_id, policy)
        self.session.execute(
            update(community_table)
            .where(community_table.c.community_id == community_id)
            .values(grant_policy=policy, updated_at=utcnow())
        )
        return self._reload(community_id)

    def _reload(self, community_id: str) -> CommunityConfig:
        stored = self.get(community_id)
        if stored is None:
            raise NotFoundError("community", community_id)
        return stored

    def _ensure_community(self, community_id: str, policy: GrantPolicy) -> None:
        exists = self.session.execute(
            select(community_table.c.community_id).where(
                community_table.c.community_id == community_id
            )
        ).scalar_one_or_none()
        if exists is None:
            self.session.execute(
                insert(community_table).values(community_id=community_id, grant_policy=policy)
            )

    def _touch(self, community_id: str) -> None:
        self.session.execute(
            update(community_table)
            .where(community_table.c.community_id == community_id)
            .values(updated_at=utcnow())
        )

    def _insert_criteria(
        self, community_id: str, criteria: Iterable[Criterion], *, start: int
    ) -> None:
        rows = [
            {
                "community_id": community_id,
                "position": start + offset,
                "target_grant": criterion.target_grant,
                "asset_class": criterion.asset_class,
                "asset_key": criterion.requirement.asset_key,
                "threshold": criterion.requirement.threshold,
            }
            for offset, criterion in enumerate(criteria)
        ]
        if rows:
            self.session.execute(insert(criterion_table), rows)

    def _criteria_by_community(self, community_ids: Sequence[str]) -> dict[str, list[Criterion]]:
        grouped: dict[str, list[Criterion]] = defaultdict(list)
        if not community_ids:
            return grouped
        rows = self.session.execute(
            select(criterion_table)
            .where(criterion_table.c.community_id.in_(community_ids))
            .order_by(criterion_table.c.community_id, criterion_table.c.position)
        ).all()
        for row in rows:
            grouped[row.community_id].append(_criterion_from_row(row))
        return grouped


class SqlAlchemyMemberLinkRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, member_id: str) -> MemberLink | None:
        exists = self.session.execute(
            select(member_link_table.c.member_id).where(
                member_link_table.c.member_id == member_id
            )
        ).scalar_one_or_none()
        if exists is None:
            return None
        wallets = self._wallets_by_member([member_id])
        return MemberLink(member_id=member_id, wallets=tuple(wallets[member_id]))

    def list_all(self) -> list[MemberLink]:
        member_ids = list(
            self.session.execute(
                select(member_link_table.c.member_id).order_by(
                    member_link_table.c.created_at, member_link_table.c.member_id
                )
            ).scalars()
        )
        wallets = self._wallets_by_member(member_ids)
        return [
            MemberLink(member_id=member_id, wallets=tuple(wallets[member_id]))
            for member_id in member_ids
        ]

    def upsert(self, link: MemberLink) -> None:
        """Replace all wallets stored for ``link.member_id``."""

        self._ensure_member(link.member_id)
        self.session.execute(delete(wallet_table).where(wallet_table.c.member_id == link.member_id))
        self._insert_wallets(link.member_id, link.wallets, start=0)
        self._touch(link.member_id)

    def link_wallet(self, member_id: str, wallet: Wallet) -> MemberLink:
        """Append ``wallet``; linking the same address twice is tolerated."""

        self._ensure_member(member_id)
        next_position = self.session.execute(
            select(func.coalesce(func.max(wallet_table.c.position) + 1, 0)).where(
                wallet_table.c.member_id == member_id
            )
        ).scalar_one()
        self._insert_wallets(member_id, (wallet,), start=int(next_position))
        self._touch(member_id)
        stored = self.get(member_id)
        if stored is None:
            raise NotFoundError("member link", member_id)
        return stored

    def _ensure_member(self, member_id: str) -> None:
        exists = self.session.execute(
            select(member_link_table.c.member_id).where(
                member_link_table.c.member_id == member_id
            )
        ).scalar_one_or_none()
        if exists is None:
            self.session.execute(insert(member_link_table).values(member_id=member_id))

    def _touch(self, member_id: str) -> None:
        self.session.execute(
            update(member_link_table)
            .where(member_link_table.c.member_id == member_id)
            .values(updated_at=utcnow())
        )

    def _insert_wallets(self, member_id: str, wallets: Iterable[Wallet], *, start: int) -> None:
        rows = [
            {
                "member_id": member_id,
                "position": start + offset,
                "address": wallet.address,
                "provider": wallet.provider,
            }
            for offset, wallet in enumerate(wallets)
        ]
        if rows:
            self.session.execute(insert(wallet_table), rows)

    def _wallets_by_member(self, member_ids: Sequence[str]) -> dict[str, list[Wallet]]:
        grouped: dict[str, list[Wallet]] = defaultdict(list)
        if not member_ids:
            return grouped
        rows = self.session.execute(
            select(wallet_table.c.member_id, wallet_table.c.address, wallet_table.c.provider)
            .where(wallet_table.c.member_id.in_(member_ids))
            .order_by(wallet_table.c.member_id, wallet_table.c.position)
        ).all()
        for row in rows:
            grouped[row.member_id].append(Wallet(address=row.address, provider=row.provider))
        return grouped


if TYPE_CHECKING:
    from rolesync.domain.ports.persistence import CommunityRepository, MemberLinkRepository

    _session_stub = cast("Session", object())
    _community_repo: CommunityRepository = SqlAlchemyCommunityRepository(_session_stub)
    _member_repo: MemberLinkRepository = SqlAlchemyMemberLinkRepository(_session_stub)
