from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, inspect, select

from reabridge.adapters.sqlalchemy import entity_mapping_table, metadata, pending_listing_table

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def _columns(engine: Engine, table: str) -> dict[str, bool]:
    return {column["name"]: column["nullable"] for column in inspect(engine).get_columns(table)}


def test_migration_matches_metadata(sqlite_engine: Engine) -> None:
    direct = create_engine("sqlite+pysqlite:///:memory:", future=True)
    metadata.create_all(direct)

    for table in metadata.sorted_tables:
        assert _columns(sqlite_engine, table.name) == _columns(direct, table.name)
        assert inspect(sqlite_engine).get_pk_constraint(table.name)["constrained_columns"] == [
            column.name for column in table.primary_key.columns
        ]

    indexes = {index["name"] for index in inspect(sqlite_engine).get_indexes("entity_mapping")}
    assert "ix_entity_mapping_external_id" in indexes


def test_timestamps_default_to_aware_utc(sqlite_engine: Engine) -> None:
    with sqlite_engine.begin() as connection:
        connection.execute(
            entity_mapping_table.insert().values(kind="user", local_id="u1", external_id="a")
        )
        connection.execute(
            pending_listing_table.insert().values(kind="request", local_id="r1", snapshot="{}")
        )

    with sqlite_engine.connect() as connection:
        created_at = connection.execute(select(entity_mapping_table.c.created_at)).scalar_one()
        enqueued_at, updated_at = connection.execute(
            select(pending_listing_table.c.enqueued_at, pending_listing_table.c.updated_at)
        ).one()

    for value in (created_at, enqueued_at, updated_at):
        assert isinstance(value, datetime)
        assert value.utcoffset() is not None
