"""Domain model for holding-based grant reconciliation."""

from __future__ import annotations

from .community import (
    Community,
    CommunityConfig,
    Grant,
    Member,
    MemberLink,
    Wallet,
    distinct_addresses,
)
from .criteria import (
    CollectionRequirement,
    Criterion,
    DuneRequirement,
    Requirement,
    TokenRequirement,
    build_requirement,
    criteria_from_flat_record,
)
from .enums import AssetClass, GrantPolicy

__all__ = [
    "AssetClass",
    "CollectionRequirement",
    "Community",
    "CommunityConfig",
    "Criterion",
    "DuneRequirement",
    "Grant",
    "GrantPolicy",
    "Member",
    "MemberLink",
    "Requirement",
    "TokenRequirement",
    "Wallet",
    "build_requirement",
    "criteria_from_flat_record",
    "distinct_addresses",
]
