from __future__ import annotations

import os
from functools import partial
from typing import TYPE_CHECKING

import pytest

from rolesync.adapters.sqlalchemy import SqlAlchemyUnitOfWork, build_engine, build_session_factory

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session, sessionmaker


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = build_engine("sqlite+pysqlite:///:memory:")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine: Engine) -> sessionmaker[Session]:
    return build_session_factory(engine=sqlite_engine)


@pytest.fixture
def sqlite_unit_of_work(
    session_factory: sessionmaker[Session],
) -> Callable[[], SqlAlchemyUnitOfWork]:
    return partial(SqlAlchemyUnitOfWork, session_factory)
