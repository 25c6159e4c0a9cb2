"""Prerequisite-gated mapping of local entities into the external economic graph.

Flow for a listing:
1) resolve the external ids of its agent, service types and medium of exchange
2) park it in the pending set while any of them is missing
3) build the proposal with its primary and reciprocal intents
4) submit, then record the proposal in the mapping table

Approving a prerequisite source creates its external object and replays the
pending listings.
"""

from __future__ import annotations

from .build import build_exchange_graph, proposal_name, proposal_note
from .contracts import (
    ListingOutcome,
    ListingStatus,
    PrerequisiteOutcome,
    PrerequisiteStatus,
    RecoveredMapping,
    RecoveryReport,
    Resolution,
    Resolved,
    RetryReport,
    Unsatisfied,
)
from .engine import ReconciliationEngine
from .errors import (
    DuplicateMappingError,
    GraphClientError,
    InvalidListingError,
    MappingError,
    MissingCapabilityError,
    ReferenceParseError,
    SourceNotFoundError,
    UnknownEventError,
)
from .events import DomainEvent, EventDispatcher, EventName, ListingCreated, SourceApproved
from .references import decode, encode, try_decode
from .resolve import AgentPolicy, PrerequisiteResolver, creator_only, organization_or_creator

__all__ = [
    "AgentPolicy",
    "DomainEvent",
    "DuplicateMappingError",
    "EventDispatcher",
    "EventName",
    "GraphClientError",
    "InvalidListingError",
    "ListingCreated",
    "ListingOutcome",
    "ListingStatus",
    "MappingError",
    "MissingCapabilityError",
    "PrerequisiteOutcome",
    "PrerequisiteResolver",
    "PrerequisiteStatus",
    "ReconciliationEngine",
    "RecoveredMapping",
    "RecoveryReport",
    "ReferenceParseError",
    "Resolution",
    "Resolved",
    "RetryReport",
    "SourceApproved",
    "SourceNotFoundError",
    "Unsatisfied",
    "UnknownEventError",
    "build_exchange_graph",
    "creator_only",
    "decode",
    "encode",
    "organization_or_creator",
    "proposal_name",
    "proposal_note",
    "try_decode",
]
