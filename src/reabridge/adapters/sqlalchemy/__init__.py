"""SQLAlchemy adapter package for reabridge."""

from __future__ import annotations

from .mappings import entity_mapping_table, metadata, pending_listing_table
from .repositories import SqlAlchemyMappingTable, SqlAlchemyPendingSet
from .unit_of_work import SqlAlchemyUnitOfWork, StartupError, shutdown, startup

__all__ = [
    "SqlAlchemyMappingTable",
    "SqlAlchemyPendingSet",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "entity_mapping_table",
    "metadata",
    "pending_listing_table",
    "shutdown",
    "startup",
]
