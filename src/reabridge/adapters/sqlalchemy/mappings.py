"""SQLAlchemy table metadata for the mapping table and the pending set."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Index,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)


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

entity_mapping_table = Table(
    "entity_mapping",
    metadata,
    Column("kind", String(32), primary_key=True),
    Column("local_id", String, primary_key=True),
    Column("external_id", String, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False, default=utcnow),
    Index("ix_entity_mapping_external_id", "external_id"),
)

pending_listing_table = Table(
    "pending_listing",
    metadata,
    Column("kind", String(16), primary_key=True),
    Column("local_id", String, primary_key=True),
    Column("snapshot", Text, nullable=False),
    Column("enqueued_at", UTCDateTime(), nullable=False, default=utcnow),
    Column("updated_at", UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow),
)
