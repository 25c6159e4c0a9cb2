"""Mapping table and pending set backed by SQLAlchemy sessions."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from reabridge.adapters.snapshots import dump_listing, load_listing
from reabridge.adapters.sqlalchemy.mappings import entity_mapping_table, pending_listing_table
from reabridge.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
from reabridge.domain.mapping.errors import DuplicateMappingError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from reabridge.domain.model import EntityKind, Listing, ListingKind

type UnitOfWorkFactory = Callable[[], SqlAlchemyUnitOfWork]


class SqlAlchemyMappingTable:
    def __init__(self, unit_of_work_factory: UnitOfWorkFactory | None = None) -> None:
        self._unit_of_work_factory = unit_of_work_factory or SqlAlchemyUnitOfWork

    def get(self, entity_kind: EntityKind, local_id: str) -> str | None:
        stmt = (
            select(entity_mapping_table.c.external_id)
            .where(entity_mapping_table.c.kind == str(entity_kind))
            .where(entity_mapping_table.c.local_id == local_id)
        )
        with self._unit_of_work_factory() as uow:
            return uow.session.execute(stmt).scalar_one_or_none()

    def put(self, entity_kind: EntityKind, local_id: str, external_id: str) -> None:
        existing = self.get(entity_kind, local_id)
        if existing is not None:
            raise DuplicateMappingError(entity_kind, local_id, existing)
        stmt = entity_mapping_table.insert().values(
            kind=str(entity_kind), local_id=local_id, external_id=external_id
        )
        with self._unit_of_work_factory() as uow:
            try:
                uow.session.execute(stmt)
                uow.commit()
            except IntegrityError as exc:
                # Lost a race with another writer on the same database.
                uow.rollback()
                raise DuplicateMappingError(
                    entity_kind, local_id, self.get(entity_kind, local_id) or "?"
                ) from exc

    def items(self, entity_kind: EntityKind) -> list[tuple[str, str]]:
        stmt = (
            select(entity_mapping_table.c.local_id, entity_mapping_table.c.external_id)
            .where(entity_mapping_table.c.kind == str(entity_kind))
            .order_by(entity_mapping_table.c.created_at, entity_mapping_table.c.local_id)
        )
        with self._unit_of_work_factory() as uow:
            return [(row.local_id, row.external_id) for row in uow.session.execute(stmt)]


class SqlAlchemyPendingSet:
    """Pending listings stored as JSON snapshots, drained in enqueue order."""

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory | None = None) -> None:
        self._unit_of_work_factory = unit_of_work_factory or SqlAlchemyUnitOfWork

    def enqueue(self, listing: Listing) -> None:
        kind = str(listing.listing_kind)
        snapshot = dump_listing(listing)
        table = pending_listing_table
        with self._unit_of_work_factory() as uow:
            updated = uow.session.execute(
                table.update()
                .where(table.c.kind == kind)
                .where(table.c.local_id == listing.local_id)
                .values(snapshot=snapshot)
            )
            if updated.rowcount == 0:
                uow.session.execute(
                    table.insert().values(kind=kind, local_id=listing.local_id, snapshot=snapshot)
                )
            uow.commit()

    def dequeue(self, listing_kind: ListingKind, local_id: str) -> None:
        table = pending_listing_table
        with self._unit_of_work_factory() as uow:
            uow.session.execute(
                table.delete()
                .where(table.c.kind == str(listing_kind))
                .where(table.c.local_id == local_id)
            )
            uow.commit()

    def get(self, listing_kind: ListingKind, local_id: str) -> Listing | None:
        table = pending_listing_table
        stmt = (
            select(table.c.snapshot)
            .where(table.c.kind == str(listing_kind))
            .where(table.c.local_id == local_id)
        )
        with self._unit_of_work_factory() as uow:
            raw = uow.session.execute(stmt).scalar_one_or_none()
        return None if raw is None else load_listing(listing_kind, raw)

    def contains(self, listing_kind: ListingKind, local_id: str) -> bool:
        table = pending_listing_table
        stmt = (
            select(table.c.local_id)
            .where(table.c.kind == str(listing_kind))
            .where(table.c.local_id == local_id)
        )
        with self._unit_of_work_factory() as uow:
            return uow.session.execute(stmt).first() is not None

    def drain(self, listing_kind: ListingKind) -> SqlAlchemyPendingDrain:
        return SqlAlchemyPendingDrain(self, listing_kind, tuple(self.local_ids(listing_kind)))

    def local_ids(self, listing_kind: ListingKind) -> list[str]:
        table = pending_listing_table
        stmt = (
            select(table.c.local_id)
            .where(table.c.kind == str(listing_kind))
            .order_by(table.c.enqueued_at, table.c.local_id)
        )
        with self._unit_of_work_factory() as uow:
            return list(uow.session.execute(stmt).scalars())

    def listings(self, listing_kind: ListingKind) -> list[Listing]:
        return list(self.drain(listing_kind))


@dataclass(frozen=True, slots=True)
class SqlAlchemyPendingDrain:
    pending: SqlAlchemyPendingSet
    listing_kind: ListingKind
    keys: tuple[str, ...]

    def __iter__(self) -> Iterator[Listing]:
        for local_id in self.keys:
            listing = self.pending.get(self.listing_kind, local_id)
            if listing is not None:
                yield listing
