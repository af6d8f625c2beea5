"""SQLAlchemy adapter package for rolesync."""

from __future__ import annotations

from .mappings import (
    community_table,
    create_all_tables,
    criterion_table,
    member_link_table,
    metadata,
    wallet_table,
)
from .repositories import SqlAlchemyCommunityRepository, SqlAlchemyMemberLinkRepository
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    UnitOfWorkStateError,
    build_engine,
    build_session_factory,
)

__all__ = [
    "SqlAlchemyCommunityRepository",
    "SqlAlchemyMemberLinkRepository",
    "SqlAlchemyUnitOfWork",
    "UnitOfWorkStateError",
    "build_engine",
    "build_session_factory",
    "community_table",
    "create_all_tables",
    "criterion_table",
    "member_link_table",
    "metadata",
    "wallet_table",
]
