"""SQLAlchemy table metadata for community configuration and wallet links."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
)

from rolesync.domain.model import AssetClass, GrantPolicy

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class DecimalString(TypeDecorator[Decimal]):
    """Exact decimal thresholds stored as text (SQLite has no native decimal)."""

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return format(value, "f")

    def process_result_value(self, value: str | None, dialect: Dialect) -> Decimal | None:
        _ = dialect
        if value is None:
            return None
        return Decimal(value)


def utcnow() -> datetime:
    return datetime.now(UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

community_table = Table(
    "community",
    metadata,
    Column("community_id", String(64), primary_key=True),
    Column(
        "grant_policy",
        Enum(GrantPolicy, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=GrantPolicy.ANY,
    ),
    Column("created_at", UTCDateTime(), nullable=False, default=utcnow),
    Column("updated_at", UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow),
)

criterion_table = Table(
    "criterion",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "community_id",
        String(64),
        ForeignKey("community.community_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("position", Integer, nullable=False),
    Column("target_grant", String(64), nullable=False),
    Column(
        "asset_class",
        Enum(AssetClass, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    ),
    Column("asset_key", String(255), nullable=False),
    Column("threshold", DecimalString(), nullable=False),
    UniqueConstraint("community_id", "position"),
)

member_link_table = Table(
    "member_link",
    metadata,
    Column("member_id", String(64), primary_key=True),
    Column("created_at", UTCDateTime(), nullable=False, default=utcnow),
    Column("updated_at", UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow),
)

wallet_table = Table(
    "wallet",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "member_id",
        String(64),
        ForeignKey("member_link.member_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("position", Integer, nullable=False),
    Column("address", String(128), nullable=False),
    Column("provider", String(64), nullable=False, default="unknown"),
    UniqueConstraint("member_id", "position"),
)


def create_all_tables(engine: Engine) -> None:
    """Create any missing tables; existing tables are left untouched."""

    log.info("Ensuring rolesync tables exist")
    metadata.create_all(engine, checkfirst=True)
