"""Snapshots of local application entities.

The local entity store owns these records; the bridge only ever sees
immutable snapshots handed over with domain events.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from reabridge.domain.model.enums import AgentType, ApprovalStatus, EntityKind, ListingKind


@dataclass(frozen=True, slots=True, kw_only=True)
class LocalEntity:
    """Entity identified by an immutable, content-addressed local id."""

    ENTITY_KIND: ClassVar[EntityKind]

    local_id: str

    def __post_init__(self) -> None:
        if not self.local_id or not self.local_id.strip():
            raise ValueError(f"{type(self).__name__} requires a non-empty local_id")

    @property
    def entity_kind(self) -> EntityKind:
        return self.ENTITY_KIND


@dataclass(frozen=True, slots=True, kw_only=True)
class PrerequisiteSource(LocalEntity):
    """Entity whose approval creates an Agent or ResourceSpecification."""

    FALLBACK_NAME: ClassVar[str]

    name: str | None = None
    status: ApprovalStatus = ApprovalStatus.PENDING

    @property
    def is_approved(self) -> bool:
        return self.status is ApprovalStatus.APPROVED

    @property
    def display_name(self) -> str:
        if self.name and self.name.strip():
            return self.name.strip()
        return self.FALLBACK_NAME


@dataclass(frozen=True, slots=True, kw_only=True)
class User(PrerequisiteSource):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.USER
    FALLBACK_NAME: ClassVar[str] = "Unknown User"
    AGENT_TYPE: ClassVar[AgentType] = AgentType.PERSON

    nickname: str | None = None

    @property
    def display_name(self) -> str:
        if self.name and self.name.strip():
            return self.name.strip()
        if self.nickname and self.nickname.strip():
            return self.nickname.strip()
        return self.FALLBACK_NAME


@dataclass(frozen=True, slots=True, kw_only=True)
class Organization(PrerequisiteSource):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.ORGANIZATION
    FALLBACK_NAME: ClassVar[str] = "Unknown Organization"
    AGENT_TYPE: ClassVar[AgentType] = AgentType.ORGANIZATION


@dataclass(frozen=True, slots=True, kw_only=True)
class ServiceType(PrerequisiteSource):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.SERVICE_TYPE
    FALLBACK_NAME: ClassVar[str] = "Unknown Service Type"


@dataclass(frozen=True, slots=True, kw_only=True)
class MediumOfExchange(PrerequisiteSource):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.MEDIUM_OF_EXCHANGE
    FALLBACK_NAME: ClassVar[str] = "Unknown Medium of Exchange"

    code: str | None = None


type AgentSource = User | Organization
type ResourceSpecSource = ServiceType | MediumOfExchange


@dataclass(frozen=True, slots=True, kw_only=True)
class Listing(LocalEntity):
    """A Request or Offer, mirrored as one proposal in the external graph."""

    LISTING_KIND: ClassVar[ListingKind]

    title: str
    creator_id: str
    medium_of_exchange_id: str
    description: str = ""
    organization_id: str | None = None
    service_type_ids: tuple[str, ...] = field(default_factory=tuple)
    revision_id: str | None = None

    @property
    def listing_kind(self) -> ListingKind:
        return self.LISTING_KIND

    @property
    def unique_service_type_ids(self) -> tuple[str, ...]:
        """Referenced service types in first-seen order, without repeats."""
        return tuple(dict.fromkeys(self.service_type_ids))


@dataclass(frozen=True, slots=True, kw_only=True)
class Request(Listing):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.REQUEST
    LISTING_KIND: ClassVar[ListingKind] = ListingKind.REQUEST

    time_estimate_hours: float | None = None

    def __post_init__(self) -> None:
        LocalEntity.__post_init__(self)
        if self.time_estimate_hours is not None and not self.time_estimate_hours > 0:
            raise ValueError(
                f"Request {self.local_id} has a non-positive time estimate: "
                f"{self.time_estimate_hours}"
            )


@dataclass(frozen=True, slots=True, kw_only=True)
class Offer(Listing):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.OFFER
    LISTING_KIND: ClassVar[ListingKind] = ListingKind.OFFER


SOURCE_CLASS_BY_KIND: dict[EntityKind, type[PrerequisiteSource]] = {
    EntityKind.USER: User,
    EntityKind.ORGANIZATION: Organization,
    EntityKind.SERVICE_TYPE: ServiceType,
    EntityKind.MEDIUM_OF_EXCHANGE: MediumOfExchange,
}

LISTING_CLASS_BY_KIND: dict[ListingKind, type[Listing]] = {
    ListingKind.REQUEST: Request,
    ListingKind.OFFER: Offer,
}
