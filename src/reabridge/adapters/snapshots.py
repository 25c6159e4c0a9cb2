"""JSON representation of local entity snapshots.

Shared by the event-file reader and the durable pending set. Field names are
camelCase on the wire; snake_case names are accepted too.
"""

from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from reabridge.domain.model import (
    LISTING_CLASS_BY_KIND,
    SOURCE_CLASS_BY_KIND,
    ApprovalStatus,
    EntityKind,
    Listing,
    ListingKind,
    MediumOfExchange,
    PrerequisiteSource,
    Request,
    User,
)


class SnapshotModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class SourceSnapshot(SnapshotModel):
    """User, organization, service type or medium of exchange.

    Snapshots arrive with approval events, so ``status`` defaults to approved.
    """

    local_id: str = Field(min_length=1)
    name: str | None = None
    status: ApprovalStatus = ApprovalStatus.APPROVED
    nickname: str | None = None
    code: str | None = None

    def to_domain(self, entity_kind: EntityKind) -> PrerequisiteSource:
        source_cls = SOURCE_CLASS_BY_KIND[entity_kind]
        kwargs: dict[str, Any] = {
            "local_id": self.local_id,
            "name": self.name,
            "status": self.status,
        }
        if source_cls is User:
            kwargs["nickname"] = self.nickname
        elif source_cls is MediumOfExchange:
            kwargs["code"] = self.code
        return source_cls(**kwargs)


class ListingSnapshot(SnapshotModel):
    local_id: str = Field(min_length=1)
    title: str
    creator_id: str = Field(min_length=1)
    medium_of_exchange_id: str = Field(min_length=1)
    description: str = ""
    organization_id: str | None = None
    service_type_ids: tuple[str, ...] = ()
    revision_id: str | None = None
    time_estimate_hours: float | None = Field(default=None, gt=0)

    def to_domain(self, listing_kind: ListingKind) -> Listing:
        kwargs: dict[str, Any] = {
            "local_id": self.local_id,
            "title": self.title,
            "creator_id": self.creator_id,
            "medium_of_exchange_id": self.medium_of_exchange_id,
            "description": self.description,
            "organization_id": self.organization_id,
            "service_type_ids": self.service_type_ids,
            "revision_id": self.revision_id,
        }
        listing_cls = LISTING_CLASS_BY_KIND[listing_kind]
        if listing_cls is Request:
            kwargs["time_estimate_hours"] = self.time_estimate_hours
        return listing_cls(**kwargs)

    @classmethod
    def from_domain(cls, listing: Listing) -> Self:
        return cls(
            local_id=listing.local_id,
            title=listing.title,
            creator_id=listing.creator_id,
            medium_of_exchange_id=listing.medium_of_exchange_id,
            description=listing.description,
            organization_id=listing.organization_id,
            service_type_ids=listing.service_type_ids,
            revision_id=listing.revision_id,
            time_estimate_hours=(
                listing.time_estimate_hours if isinstance(listing, Request) else None
            ),
        )


def dump_listing(listing: Listing) -> str:
    return ListingSnapshot.from_domain(listing).model_dump_json(by_alias=True, exclude_none=True)


def load_listing(listing_kind: ListingKind, raw: str) -> Listing:
    return ListingSnapshot.model_validate_json(raw).to_domain(listing_kind)
