from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, inspect, select

from reabridge.adapters.sqlalchemy.mappings import entity_mapping_table
from reabridge.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_startup_migrates_schema() -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine)

    tables = set(inspect(engine).get_table_names())
    assert {"entity_mapping", "pending_listing", "alembic_version"} <= tables


def test_startup_from_database_uri(tmp_path: Path) -> None:
    startup(database_uri=f"sqlite+pysqlite:///{tmp_path / 'bridge.db'}")

    assert is_started()
    assert (tmp_path / "bridge.db").exists()


def test_unit_of_work_rolls_back_on_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError, match="boom"), SqlAlchemyUnitOfWork() as uow:
        uow.session.execute(
            entity_mapping_table.insert().values(kind="user", local_id="u1", external_id="a")
        )
        raise RuntimeError("boom")

    with SqlAlchemyUnitOfWork() as uow:
        rows = uow.session.execute(select(entity_mapping_table)).all()
    assert rows == []


def test_unit_of_work_session_is_scoped(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.session

    with uow:
        assert uow.session is not None
        with pytest.raises(StartupError):
            uow.__enter__()
