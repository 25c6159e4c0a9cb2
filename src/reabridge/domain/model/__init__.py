"""Public domain model surface."""

from __future__ import annotations

from reabridge.domain.model.entities import (
    LISTING_CLASS_BY_KIND,
    SOURCE_CLASS_BY_KIND,
    AgentSource,
    Listing,
    LocalEntity,
    MediumOfExchange,
    Offer,
    Organization,
    PrerequisiteSource,
    Request,
    ResourceSpecSource,
    ServiceType,
    User,
)
from reabridge.domain.model.enums import (
    AgentType,
    ApprovalStatus,
    EntityKind,
    IntentAction,
    ListingKind,
    PrerequisiteCategory,
)
from reabridge.domain.model.graph import (
    HOUR_UNIT,
    ExchangeGraph,
    ExternalAgent,
    ExternalIntent,
    ExternalProposal,
    ExternalResourceSpec,
    IntentDraft,
    ProposalDraft,
    Quantity,
    SubmittedGraph,
)

__all__ = [  # noqa: RUF022
    # local entities
    "LocalEntity",
    "PrerequisiteSource",
    "User",
    "Organization",
    "ServiceType",
    "MediumOfExchange",
    "AgentSource",
    "ResourceSpecSource",
    "Listing",
    "Request",
    "Offer",
    "SOURCE_CLASS_BY_KIND",
    "LISTING_CLASS_BY_KIND",
    # external graph
    "ProposalDraft",
    "IntentDraft",
    "ExchangeGraph",
    "Quantity",
    "HOUR_UNIT",
    "SubmittedGraph",
    "ExternalAgent",
    "ExternalResourceSpec",
    "ExternalProposal",
    "ExternalIntent",
    # enums
    "AgentType",
    "ApprovalStatus",
    "EntityKind",
    "IntentAction",
    "ListingKind",
    "PrerequisiteCategory",
]
