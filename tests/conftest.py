from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from parcelsync.adapters.sqlalchemy import (
    SqlAlchemyReconciliationUnitOfWork,
    create_all_tables,
    start_mappers,
)
from parcelsync.adapters.sqlalchemy.unit_of_work import shutdown, startup
from tests.helpers.parcels import FixedClock, InMemoryStore, fake_uow_factory

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from tests.helpers.parcels import FakeUnitOfWork


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite://",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyReconciliationUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemyReconciliationUnitOfWork
    finally:
        shutdown()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def uow_factory(store: InMemoryStore) -> Callable[[], FakeUnitOfWork]:
    return fake_uow_factory(store)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()
