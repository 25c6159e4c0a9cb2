"""In-process stores for tests and ephemeral runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from reabridge.domain.mapping.errors import DuplicateMappingError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from reabridge.domain.model import EntityKind, Listing, ListingKind, PrerequisiteSource


@dataclass(slots=True)
class InMemoryMappingTable:
    _entries: dict[tuple[EntityKind, str], str] = field(default_factory=dict)

    def get(self, entity_kind: EntityKind, local_id: str) -> str | None:
        return self._entries.get((entity_kind, local_id))

    def put(self, entity_kind: EntityKind, local_id: str, external_id: str) -> None:
        existing = self._entries.get((entity_kind, local_id))
        if existing is not None:
            raise DuplicateMappingError(entity_kind, local_id, existing)
        self._entries[(entity_kind, local_id)] = external_id

    def items(self, entity_kind: EntityKind) -> list[tuple[str, str]]:
        return [
            (local_id, external_id)
            for (kind, local_id), external_id in self._entries.items()
            if kind == entity_kind
        ]

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(slots=True)
class InMemoryPendingSet:
    _queues: dict[ListingKind, dict[str, Listing]] = field(default_factory=dict)

    def enqueue(self, listing: Listing) -> None:
        self._queue(listing.listing_kind)[listing.local_id] = listing

    def dequeue(self, listing_kind: ListingKind, local_id: str) -> None:
        self._queue(listing_kind).pop(local_id, None)

    def get(self, listing_kind: ListingKind, local_id: str) -> Listing | None:
        return self._queue(listing_kind).get(local_id)

    def contains(self, listing_kind: ListingKind, local_id: str) -> bool:
        return local_id in self._queue(listing_kind)

    def drain(self, listing_kind: ListingKind) -> Iterable[Listing]:
        return _PendingDrain(self, listing_kind, tuple(self._queue(listing_kind)))

    def listings(self, listing_kind: ListingKind) -> list[Listing]:
        return list(self._queue(listing_kind).values())

    def _queue(self, listing_kind: ListingKind) -> dict[str, Listing]:
        return self._queues.setdefault(listing_kind, {})


@dataclass(frozen=True, slots=True)
class _PendingDrain:
    """Restartable view over the keys that were pending when the drain began."""

    pending: InMemoryPendingSet
    listing_kind: ListingKind
    keys: tuple[str, ...]

    def __iter__(self) -> Iterator[Listing]:
        for local_id in self.keys:
            listing = self.pending.get(self.listing_kind, local_id)
            if listing is not None:
                yield listing


@dataclass(slots=True)
class InMemorySourceDirectory:
    _sources: dict[tuple[EntityKind, str], PrerequisiteSource] = field(default_factory=dict)

    def add(self, source: PrerequisiteSource) -> None:
        self._sources[(source.entity_kind, source.local_id)] = source

    def get_source(self, entity_kind: EntityKind, local_id: str) -> PrerequisiteSource | None:
        return self._sources.get((entity_kind, local_id))
