"""SQLAlchemy-backed unit of work for the configuration and link store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from rolesync.adapters.sqlalchemy.mappings import create_all_tables
from rolesync.adapters.sqlalchemy.repositories import (
    SqlAlchemyCommunityRepository,
    SqlAlchemyMemberLinkRepository,
)
from rolesync.domain.ports.unit_of_work import ReconciliationRepositories

if TYPE_CHECKING:
    from sqlite3 import Connection as SQLiteConnection
    from types import TracebackType

    from sqlalchemy.engine import Engine
    from sqlalchemy.pool import ConnectionPoolEntry


class UnitOfWorkStateError(RuntimeError):
    """Raised when a unit of work is used outside its ``with`` block."""


def _enable_sqlite_foreign_keys(
    dbapi_connection: SQLiteConnection, connection_record: ConnectionPoolEntry
) -> None:
    _ = connection_record
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_uri: str) -> Engine:
    engine = create_engine(database_uri, future=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def build_session_factory(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
) -> sessionmaker[Session]:
    """Create missing tables and return a session factory bound to the engine."""

    if engine is None:
        if database_uri is None:
            raise ValueError("Pass either an engine or a database_uri")
        engine = build_engine(database_uri)
    create_all_tables(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


class SqlAlchemyUnitOfWork:
    """Session-scoped access to the community and member-link repositories."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory
        self._session: Session | None = None
        self._repositories: ReconciliationRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise UnitOfWorkStateError("Unit of work session already initialised")
        self._session = self.session_factory()
        self._repositories = ReconciliationRepositories(
            communities=SqlAlchemyCommunityRepository(self._session),
            member_links=SqlAlchemyMemberLinkRepository(self._session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        # anything not committed explicitly is discarded
        self.rollback()
        session.close()
        self._session = None
        self._repositories = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> ReconciliationRepositories:
        if self._repositories is None:
            raise UnitOfWorkStateError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise UnitOfWorkStateError("Unit of work session not initialised")
        return self._session


if TYPE_CHECKING:
    from rolesync.domain.ports.unit_of_work import ReconciliationUnitOfWork

    _uow_check: ReconciliationUnitOfWork = SqlAlchemyUnitOfWork(sessionmaker())
