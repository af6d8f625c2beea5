"""Port for the platform that owns grant (role) membership."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rolesync.domain.model import Community, Grant, Member


@runtime_checkable
class AccessControl(Protocol):
    """Lookup and actuation capability for community grants.

    Lookups raise ``NotFoundError`` for missing communities, grants or members.
    ``add_grant``/``remove_grant`` raise ``ActuationError`` when the platform
    refuses the change.
    """

    async def wait_until_ready(self) -> None: ...

    async def get_community(self, community_id: str) -> Community: ...

    async def get_grant(self, community_id: str, grant_id: str) -> Grant: ...

    async def get_member(self, community_id: str, member_id: str) -> Member: ...

    async def add_grant(self, community_id: str, member_id: str, grant_id: str) -> None: ...

    async def remove_grant(self, community_id: str, member_id: str, grant_id: str) -> None: ...

    async def member_has_grant(self, community_id: str, member_id: str, grant_id: str) -> bool: ...


__all__ = ["AccessControl"]
