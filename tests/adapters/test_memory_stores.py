from __future__ import annotations

import pytest

from reabridge.adapters.memory import (
    InMemoryMappingTable,
    InMemoryPendingSet,
    InMemorySourceDirectory,
)
from reabridge.domain.mapping import DuplicateMappingError
from reabridge.domain.model import EntityKind, ListingKind
from reabridge.domain.ports import MappingTable, PendingSet, SourceDirectory
from tests.helpers.factories import make_offer, make_request, make_user


def test_stores_satisfy_ports() -> None:
    assert isinstance(InMemoryMappingTable(), MappingTable)
    assert isinstance(InMemoryPendingSet(), PendingSet)
    assert isinstance(InMemorySourceDirectory(), SourceDirectory)


def test_mapping_table_never_overwrites() -> None:
    table = InMemoryMappingTable()
    table.put(EntityKind.USER, "u1", "agent-1")

    with pytest.raises(DuplicateMappingError) as excinfo:
        table.put(EntityKind.USER, "u1", "agent-2")

    assert excinfo.value.existing_id == "agent-1"
    assert table.get(EntityKind.USER, "u1") == "agent-1"


def test_mapping_keys_are_scoped_by_kind() -> None:
    table = InMemoryMappingTable()
    table.put(EntityKind.USER, "x", "agent-1")
    table.put(EntityKind.SERVICE_TYPE, "x", "spec-1")

    assert table.get(EntityKind.ORGANIZATION, "x") is None
    assert table.items(EntityKind.SERVICE_TYPE) == [("x", "spec-1")]
    assert len(table) == 2


def test_pending_set_keeps_latest_snapshot() -> None:
    pending = InMemoryPendingSet()
    pending.enqueue(make_request(title="Draft"))
    pending.enqueue(make_request(title="Final"))
    pending.enqueue(make_offer("r1"))

    assert pending.get(ListingKind.REQUEST, "r1") == make_request(title="Final")
    assert pending.contains(ListingKind.OFFER, "r1")

    pending.dequeue(ListingKind.REQUEST, "r1")
    pending.dequeue(ListingKind.REQUEST, "missing")

    assert not pending.contains(ListingKind.REQUEST, "r1")
    assert pending.contains(ListingKind.OFFER, "r1")


def test_drain_skips_listings_removed_meanwhile() -> None:
    pending = InMemoryPendingSet()
    for local_id in ("r1", "r2", "r3"):
        pending.enqueue(make_request(local_id))

    seen: list[str] = []
    for listing in pending.drain(ListingKind.REQUEST):
        seen.append(listing.local_id)
        if listing.local_id == "r1":
            pending.dequeue(ListingKind.REQUEST, "r2")
            pending.enqueue(make_request("r4"))

    assert seen == ["r1", "r3"]
    assert [listing.local_id for listing in pending.listings(ListingKind.REQUEST)] == [
        "r1",
        "r3",
        "r4",
    ]


def test_drain_yields_snapshot_current_at_iteration() -> None:
    pending = InMemoryPendingSet()
    pending.enqueue(make_request("r1"))
    pending.enqueue(make_request("r2", title="Old"))

    titles: list[str] = []
    for listing in pending.drain(ListingKind.REQUEST):
        titles.append(listing.title)
        pending.enqueue(make_request("r2", title="New"))

    assert titles == ["Website redesign", "New"]


def test_source_directory_lookup() -> None:
    directory = InMemorySourceDirectory()
    directory.add(make_user())

    assert directory.get_source(EntityKind.USER, "u1") == make_user()
    assert directory.get_source(EntityKind.ORGANIZATION, "u1") is None
