"""Inbound domain events and their subscription table."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from reabridge.domain.model import EntityKind, ListingKind

from .errors import SourceNotFoundError, UnknownEventError

if TYPE_CHECKING:
    from reabridge.domain.model import Listing, PrerequisiteSource
    from reabridge.domain.ports import SourceDirectory

    from .contracts import ListingOutcome, PrerequisiteOutcome
    from .engine import ReconciliationEngine


log = getLogger(__name__)


class EventName(StrEnum):
    USER_APPROVED = "user.approved"
    ORGANIZATION_APPROVED = "organization.approved"
    SERVICE_TYPE_APPROVED = "serviceType.approved"
    MEDIUM_OF_EXCHANGE_APPROVED = "mediumOfExchange.approved"
    REQUEST_CREATED = "request.created"
    OFFER_CREATED = "offer.created"


APPROVAL_EVENT_KINDS: dict[EventName, EntityKind] = {
    EventName.USER_APPROVED: EntityKind.USER,
    EventName.ORGANIZATION_APPROVED: EntityKind.ORGANIZATION,
    EventName.SERVICE_TYPE_APPROVED: EntityKind.SERVICE_TYPE,
    EventName.MEDIUM_OF_EXCHANGE_APPROVED: EntityKind.MEDIUM_OF_EXCHANGE,
}

LISTING_EVENT_KINDS: dict[EventName, ListingKind] = {
    EventName.REQUEST_CREATED: ListingKind.REQUEST,
    EventName.OFFER_CREATED: ListingKind.OFFER,
}


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceApproved:
    """Approval of a prerequisite source, carrying a snapshot or only its id."""

    name: EventName
    local_id: str
    source: PrerequisiteSource | None = None

    @property
    def entity_kind(self) -> EntityKind:
        return APPROVAL_EVENT_KINDS[self.name]


@dataclass(frozen=True, slots=True, kw_only=True)
class ListingCreated:
    name: EventName
    listing: Listing


type DomainEvent = SourceApproved | ListingCreated
type EventOutcome = ListingOutcome | PrerequisiteOutcome
type EventHandler = Callable[[DomainEvent], Awaitable[EventOutcome]]


@dataclass(slots=True)
class EventDispatcher:
    """Route domain events to the engine handler subscribed to their name."""

    engine: ReconciliationEngine
    directory: SourceDirectory | None = None
    handlers: dict[EventName, EventHandler] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.handlers = {
            **dict.fromkeys(APPROVAL_EVENT_KINDS, self._on_source_approved),
            **dict.fromkeys(LISTING_EVENT_KINDS, self._on_listing_created),
        }

    async def dispatch(self, event: DomainEvent) -> EventOutcome:
        handler = self.handlers.get(event.name)
        if handler is None:
            raise UnknownEventError(f"No handler subscribed to {event.name!r}")
        log.debug("Dispatching %s", event.name)
        return await handler(event)

    async def _on_source_approved(self, event: DomainEvent) -> EventOutcome:
        if not isinstance(event, SourceApproved):
            raise TypeError(
                f"{event.name} expects a SourceApproved event, got {type(event).__name__}"
            )
        source = event.source or self._load_source(event.entity_kind, event.local_id)
        if source.entity_kind is not event.entity_kind:
            raise ValueError(
                f"{event.name} carries a {source.entity_kind} snapshot, "
                f"expected {event.entity_kind}"
            )
        return await self.engine.on_prerequisite_approved(source)

    async def _on_listing_created(self, event: DomainEvent) -> EventOutcome:
        if not isinstance(event, ListingCreated):
            raise TypeError(
                f"{event.name} expects a ListingCreated event, got {type(event).__name__}"
            )
        expected = LISTING_EVENT_KINDS[event.name]
        if event.listing.listing_kind is not expected:
            raise ValueError(
                f"{event.name} carries a {event.listing.listing_kind} snapshot, "
                f"expected {expected}"
            )
        return await self.engine.on_listing_created(event.listing)

    def _load_source(self, entity_kind: EntityKind, local_id: str) -> PrerequisiteSource:
        if self.directory is None:
            raise SourceNotFoundError(
                f"{entity_kind} {local_id} was approved by id but no source directory is configured"
            )
        source = self.directory.get_source(entity_kind, local_id)
        if source is None:
            raise SourceNotFoundError(f"Unknown {entity_kind} {local_id}")
        return source
