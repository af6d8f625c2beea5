"""Community configuration, member wallet links and access-control views."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rolesync.domain.model.enums import GrantPolicy

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from rolesync.domain.model.criteria import Criterion


@dataclass(frozen=True, slots=True)
class CommunityConfig:
    """Criteria configured for one community, keyed on ``community_id``."""

    community_id: str
    criteria: tuple[Criterion, ...] = ()
    grant_policy: GrantPolicy = GrantPolicy.ANY

    def grants(self) -> tuple[str, ...]:
        """Target grants in the order they first appear in ``criteria``."""

        return tuple(dict.fromkeys(criterion.target_grant for criterion in self.criteria))

    def criteria_for(self, grant_id: str) -> tuple[Criterion, ...]:
        return tuple(c for c in self.criteria if c.target_grant == grant_id)

    def iter_grant_groups(self) -> Iterator[tuple[str, tuple[Criterion, ...]]]:
        for grant_id in self.grants():
            yield grant_id, self.criteria_for(grant_id)


@dataclass(frozen=True, slots=True)
class Wallet:
    address: str
    provider: str = "unknown"


@dataclass(frozen=True, slots=True)
class MemberLink:
    """Wallets linked to one member identity. Duplicate addresses are tolerated."""

    member_id: str
    wallets: tuple[Wallet, ...] = ()


def distinct_addresses(wallets: Iterable[Wallet]) -> tuple[str, ...]:
    """Wallet addresses in first-seen order, each once."""

    return tuple(dict.fromkeys(wallet.address for wallet in wallets))


@dataclass(frozen=True, slots=True)
class Community:
    community_id: str
    name: str | None = None


@dataclass(frozen=True, slots=True)
class Grant:
    grant_id: str
    name: str | None = None


@dataclass(frozen=True, slots=True)
class Member:
    """A member as currently seen by the access-control platform."""

    member_id: str
    display_name: str | None = None
    grant_ids: frozenset[str] = field(default_factory=frozenset[str])

    def holds(self, grant_id: str) -> bool:
        return grant_id in self.grant_ids

    @property
    def label(self) -> str:
        return self.display_name or self.member_id
