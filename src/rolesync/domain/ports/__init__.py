"""Domain port definitions for adapters."""

from __future__ import annotations

from .access_control import AccessControl
from .holdings import AssetCatalog, HoldingsSource
from .persistence import CommunityRepository, MemberLinkRepository
from .unit_of_work import (
    ReconciliationRepositories,
    ReconciliationUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AccessControl",
    "AssetCatalog",
    "CommunityRepository",
    "HoldingsSource",
    "MemberLinkRepository",
    "ReconciliationRepositories",
    "ReconciliationUnitOfWork",
    "RepositoryCollection",
    "UnitOfWork",
]
