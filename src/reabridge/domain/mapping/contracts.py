"""Result values exchanged between the mapping stages and returned to callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from reabridge.domain.model import EntityKind, ListingKind, PrerequisiteCategory

    from .errors import MappingError


@dataclass(frozen=True, slots=True, kw_only=True)
class Resolved:
    """Every external id a listing needs to be submitted."""

    agent_id: str
    resource_spec_ids: tuple[str, ...]
    medium_of_exchange_spec_id: str
    status: Literal["resolved"] = "resolved"


@dataclass(frozen=True, slots=True, kw_only=True)
class Unsatisfied:
    """Prerequisite categories that have no mapping entry yet."""

    missing: frozenset[PrerequisiteCategory]
    status: Literal["unsatisfied"] = "unsatisfied"

    def __post_init__(self) -> None:
        if not self.missing:
            raise ValueError("Unsatisfied resolution must name at least one category")


type Resolution = Resolved | Unsatisfied


class ListingStatus(StrEnum):
    MAPPED = "mapped"
    ALREADY_MAPPED = "already_mapped"
    PENDING = "pending"
    FAILED = "failed"


class PrerequisiteStatus(StrEnum):
    CREATED = "created"
    ALREADY_MAPPED = "already_mapped"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True, kw_only=True)
class ListingOutcome:
    """What happened to one listing on one mapping attempt."""

    listing_kind: ListingKind
    local_id: str
    status: ListingStatus
    proposal_id: str | None = None
    intent_ids: tuple[str, ...] = ()
    missing: frozenset[PrerequisiteCategory] = frozenset()
    error: MappingError | None = None

    @property
    def ok(self) -> bool:
        return self.status is not ListingStatus.FAILED


@dataclass(frozen=True, slots=True, kw_only=True)
class PrerequisiteOutcome:
    """Result of mapping one approved prerequisite source."""

    entity_kind: EntityKind
    local_id: str
    status: PrerequisiteStatus
    external_id: str | None = None
    error: MappingError | None = None
    retries: tuple[RetryReport, ...] = ()


@dataclass(slots=True, kw_only=True)
class RetryReport:
    """Summary of one ``drain_and_retry`` pass over a listing kind."""

    listing_kind: ListingKind
    mapped: list[ListingOutcome] = field(default_factory=list)
    still_pending: list[ListingOutcome] = field(default_factory=list)
    failed: list[ListingOutcome] = field(default_factory=list)

    def record(self, outcome: ListingOutcome) -> None:
        match outcome.status:
            case ListingStatus.MAPPED | ListingStatus.ALREADY_MAPPED:
                self.mapped.append(outcome)
            case ListingStatus.PENDING:
                self.still_pending.append(outcome)
            case ListingStatus.FAILED:
                self.failed.append(outcome)

    @property
    def attempted(self) -> int:
        return len(self.mapped) + len(self.still_pending) + len(self.failed)


@dataclass(frozen=True, slots=True, kw_only=True)
class RecoveredMapping:
    """Mapping entry reconstructed from an external object's annotation."""

    entity_kind: EntityKind
    local_id: str
    external_id: str


@dataclass(slots=True, kw_only=True)
class RecoveryReport:
    """Result of one recovery pass.

    ``incomplete`` counts annotated proposals that are not fully linked;
    ``retries`` holds the pending drains run after prerequisites were restored.
    """

    restored: list[RecoveredMapping] = field(default_factory=list)
    already_mapped: int = 0
    conflicts: list[RecoveredMapping] = field(default_factory=list)
    ignored: int = 0
    incomplete: int = 0
    unavailable: list[str] = field(default_factory=list)
    retries: tuple[RetryReport, ...] = ()
