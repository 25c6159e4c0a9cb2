"""Ports for the mapping table and the pending-listing set."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from reabridge.domain.model import EntityKind, Listing, ListingKind


@runtime_checkable
class MappingTable(Protocol):
    """Write-once store of ``(entity kind, local id) -> external id``."""

    def get(self, entity_kind: EntityKind, local_id: str) -> str | None: ...

    def put(self, entity_kind: EntityKind, local_id: str, external_id: str) -> None:
        """Store a mapping; raise ``DuplicateMappingError`` if the key exists."""
        ...

    def items(self, entity_kind: EntityKind) -> Iterable[tuple[str, str]]: ...


@runtime_checkable
class PendingSet(Protocol):
    """Per-listing-kind queue of listings waiting for prerequisites."""

    def enqueue(self, listing: Listing) -> None:
        """Insert or replace the snapshot for the listing."""
        ...

    def dequeue(self, listing_kind: ListingKind, local_id: str) -> None: ...

    def get(self, listing_kind: ListingKind, local_id: str) -> Listing | None: ...

    def contains(self, listing_kind: ListingKind, local_id: str) -> bool: ...

    def drain(self, listing_kind: ListingKind) -> Iterable[Listing]:
        """Iterate the listings present at call time.

        Each pass yields the current snapshot of every captured key that is
        still enqueued. Listings added after the call are left for a later
        drain.
        """
        ...
