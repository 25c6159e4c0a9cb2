from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from reabridge.adapters.memory import InMemoryMappingTable, InMemoryPendingSet
from reabridge.adapters.sqlalchemy.migrations import upgrade_head
from reabridge.adapters.sqlalchemy.unit_of_work import shutdown, startup
from reabridge.domain.mapping import ReconciliationEngine
from tests.helpers.graph import RecordingGraphClient

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def graph() -> RecordingGraphClient:
    return RecordingGraphClient()


@pytest.fixture
def mappings() -> InMemoryMappingTable:
    return InMemoryMappingTable()


@pytest.fixture
def pending() -> InMemoryPendingSet:
    return InMemoryPendingSet()


@pytest.fixture
def engine(
    graph: RecordingGraphClient,
    mappings: InMemoryMappingTable,
    pending: InMemoryPendingSet,
) -> ReconciliationEngine:
    return ReconciliationEngine(mappings=mappings, pending=pending, graph=graph)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def started_adapter(sqlite_engine: Engine) -> Iterator[Engine]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield sqlite_engine
    finally:
        shutdown()
