"""Ports for the configuration and member-link store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rolesync.domain.model import CommunityConfig, Criterion, GrantPolicy, MemberLink, Wallet


@runtime_checkable
class CommunityRepository(Protocol):
    """Persistence contract for community configurations."""

    def get(self, community_id: str) -> CommunityConfig | None: ...

    def list_all(self) -> list[CommunityConfig]: ...

    def upsert(self, config: CommunityConfig) -> None: ...

    def append_criteria(
        self, community_id: str, criteria: Sequence[Criterion]
    ) -> CommunityConfig: ...

    def set_grant_policy(self, community_id: str, policy: GrantPolicy) -> CommunityConfig: ...


@runtime_checkable
class MemberLinkRepository(Protocol):
    """Persistence contract for member-to-wallet links."""

    def get(self, member_id: str) -> MemberLink | None: ...

    def list_all(self) -> list[MemberLink]: ...

    def upsert(self, link: MemberLink) -> None: ...

    def link_wallet(self, member_id: str, wallet: Wallet) -> MemberLink: ...


__all__ = ["CommunityRepository", "MemberLinkRepository"]
