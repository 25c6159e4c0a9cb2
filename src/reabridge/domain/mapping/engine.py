"""Prerequisite-gated mapping of listings into the external graph.

Per listing the engine moves ``Unmapped -> Pending -> Mapped``:

- a listing whose prerequisites are all mapped is submitted immediately
- otherwise it is parked in the pending set
- every approved prerequisite triggers a retry of both pending queues

The check-mapped, resolve, build, submit and store steps for one listing run
under a per-listing ``asyncio.Lock``, so concurrent events for the same
listing submit at most one proposal. Prerequisite creation is serialized the
same way per source.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from reabridge.domain.model import (
    EntityKind,
    ListingKind,
    MediumOfExchange,
    Organization,
    ServiceType,
    SubmittedGraph,
    User,
)

from .build import build_exchange_graph
from .contracts import (
    ListingOutcome,
    ListingStatus,
    PrerequisiteOutcome,
    PrerequisiteStatus,
    RecoveryReport,
    RetryReport,
    Unsatisfied,
)
from .errors import DuplicateMappingError, GraphClientError, InvalidListingError
from .recovery import scan_external_annotations
from .references import encode
from .resolve import AgentPolicy, PrerequisiteResolver, organization_or_creator

if TYPE_CHECKING:
    from reabridge.domain.model import ExchangeGraph, Listing, PrerequisiteSource
    from reabridge.domain.ports import GraphClient, MappingTable, PendingSet

    from .contracts import Resolved

type BuildExchangeGraph = Callable[[Listing, Resolved], ExchangeGraph]
type LockKey = tuple[str, str]

LISTING_ENTITY_KINDS = frozenset({EntityKind.REQUEST, EntityKind.OFFER})


log = getLogger(__name__)


@dataclass(slots=True)
class ReconciliationEngine:
    """Mirror approved sources and listings into the external graph.

    The engine is the only writer of ``mappings`` and ``pending``.
    """

    mappings: MappingTable
    pending: PendingSet
    graph: GraphClient
    agent_policy: AgentPolicy = field(default=organization_or_creator)
    build: BuildExchangeGraph = field(default=build_exchange_graph)
    submit_timeout_seconds: float | None = None
    resolver: PrerequisiteResolver = field(init=False, repr=False)
    _listing_locks: dict[LockKey, asyncio.Lock] = field(
        default_factory=dict, init=False, repr=False
    )
    _source_locks: dict[LockKey, asyncio.Lock] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self.resolver = PrerequisiteResolver(self.mappings, self.agent_policy)

    # ------------------------------------------------------------------
    # listings

    async def on_listing_created(self, listing: Listing) -> ListingOutcome:
        """Map ``listing`` now or park it until its prerequisites exist.

        Graph failures are logged and returned as ``failed`` outcomes.
        ``DuplicateMappingError`` propagates.
        """

        outcome = await self._attempt(listing, from_pending=False)
        if outcome is None:
            raise RuntimeError(f"No outcome for {listing.listing_kind} {listing.local_id}")
        return outcome

    async def map_listing(self, listing: Listing) -> ListingOutcome:
        """Like :meth:`on_listing_created`, but raise the error of a failed attempt."""

        outcome = await self.on_listing_created(listing)
        if outcome.error is not None:
            raise outcome.error
        return outcome

    async def drain_and_retry(self, listing_kind: ListingKind) -> RetryReport:
        """Retry every listing of ``listing_kind`` that was pending when called."""

        report = RetryReport(listing_kind=listing_kind)
        for listing in self.pending.drain(listing_kind):
            outcome = await self._attempt(listing, from_pending=True)
            if outcome is not None:
                report.record(outcome)
        if report.attempted:
            log.info(
                "Retried pending %s listings: mapped=%s, still_pending=%s, failed=%s",
                listing_kind,
                len(report.mapped),
                len(report.still_pending),
                len(report.failed),
            )
        return report

    async def _attempt(self, listing: Listing, *, from_pending: bool) -> ListingOutcome | None:
        kind = listing.listing_kind
        local_id = listing.local_id
        async with self._lock(self._listing_locks, (kind, local_id)):
            if from_pending:
                # Use the snapshot current at lock time; a concurrent attempt
                # may have mapped, failed or replaced it.
                current = self.pending.get(kind, local_id)
                if current is None:
                    return None
                listing = current

            existing = self.mappings.get(kind.entity_kind, local_id)
            if existing is not None:
                self.pending.dequeue(kind, local_id)
                log.debug("%s %s already mapped to %s", kind.label, local_id, existing)
                return ListingOutcome(
                    listing_kind=kind,
                    local_id=local_id,
                    status=ListingStatus.ALREADY_MAPPED,
                    proposal_id=existing,
                )

            resolution = self.resolver.resolve(listing)
            if isinstance(resolution, Unsatisfied):
                if not from_pending:
                    self.pending.enqueue(listing)
                log.info(
                    "%s %s waiting for prerequisites: %s",
                    kind.label,
                    local_id,
                    ", ".join(sorted(resolution.missing)),
                )
                return ListingOutcome(
                    listing_kind=kind,
                    local_id=local_id,
                    status=ListingStatus.PENDING,
                    missing=resolution.missing,
                )

            try:
                exchange = self.build(listing, resolution)
                submitted = await self._submit(exchange)
            except (InvalidListingError, GraphClientError) as exc:
                self.pending.dequeue(kind, local_id)
                log.warning("Mapping %s %s failed: %s", kind.label, local_id, exc)
                return ListingOutcome(
                    listing_kind=kind,
                    local_id=local_id,
                    status=ListingStatus.FAILED,
                    error=exc,
                )

            self._store(kind.entity_kind, local_id, submitted.proposal_id)
            self.pending.dequeue(kind, local_id)
            log.info(
                "Mapped %s %s to proposal %s with %s intents",
                kind.label,
                local_id,
                submitted.proposal_id,
                len(submitted.intent_ids),
            )
            return ListingOutcome(
                listing_kind=kind,
                local_id=local_id,
                status=ListingStatus.MAPPED,
                proposal_id=submitted.proposal_id,
                intent_ids=submitted.intent_ids,
            )

    async def _submit(self, exchange: ExchangeGraph) -> SubmittedGraph:
        try:
            async with asyncio.timeout(self.submit_timeout_seconds):
                return await self._submit_sequence(exchange)
        except TimeoutError as exc:
            raise GraphClientError(
                f"Submitting proposal {exchange.proposal.name!r} timed out "
                f"after {self.submit_timeout_seconds}s",
                operation="submit",
            ) from exc

    async def _submit_sequence(self, exchange: ExchangeGraph) -> SubmittedGraph:
        proposal = exchange.proposal
        proposal_id = await self.graph.create_proposal(proposal.name, proposal.note)
        created: list[str] = []
        try:
            for intent in exchange.intents:
                created.append(await self.graph.create_intent(intent))
            for intent, intent_id in zip(exchange.intents, created, strict=True):
                await self.graph.link_intent_to_proposal(
                    proposal_id, intent_id, reciprocal=intent.reciprocal
                )
        except (GraphClientError, asyncio.CancelledError):
            log.warning(
                "Submission of %r interrupted; proposal %s and intents %s are orphaned",
                proposal.name,
                proposal_id,
                created,
            )
            raise
        primary_count = len(exchange.primary_intents)
        return SubmittedGraph(
            proposal_id=proposal_id,
            primary_intent_ids=tuple(created[:primary_count]),
            reciprocal_intent_id=created[primary_count],
        )

    # ------------------------------------------------------------------
    # prerequisites

    async def on_prerequisite_approved(self, source: PrerequisiteSource) -> PrerequisiteOutcome:
        """Create the Agent or ResourceSpecification for ``source``, then retry listings."""

        outcome = await self._map_source(source)
        if outcome.status in (PrerequisiteStatus.SKIPPED, PrerequisiteStatus.FAILED):
            return outcome
        retries = (
            await self.drain_and_retry(ListingKind.REQUEST),
            await self.drain_and_retry(ListingKind.OFFER),
        )
        return replace(outcome, retries=retries)

    async def _map_source(self, source: PrerequisiteSource) -> PrerequisiteOutcome:
        kind = source.entity_kind
        local_id = source.local_id
        if not source.is_approved:
            log.debug("Skipping %s %s with status %s", kind, local_id, source.status)
            return PrerequisiteOutcome(
                entity_kind=kind, local_id=local_id, status=PrerequisiteStatus.SKIPPED
            )

        async with self._lock(self._source_locks, (kind, local_id)):
            existing = self.mappings.get(kind, local_id)
            if existing is not None:
                return PrerequisiteOutcome(
                    entity_kind=kind,
                    local_id=local_id,
                    status=PrerequisiteStatus.ALREADY_MAPPED,
                    external_id=existing,
                )
            try:
                external_id = await self._create_external(source)
            except GraphClientError as exc:
                log.warning("Creating external object for %s %s failed: %s", kind, local_id, exc)
                return PrerequisiteOutcome(
                    entity_kind=kind,
                    local_id=local_id,
                    status=PrerequisiteStatus.FAILED,
                    error=exc,
                )
            self._store(kind, local_id, external_id)
            log.info("Mapped %s %s to %s", kind, local_id, external_id)
            return PrerequisiteOutcome(
                entity_kind=kind,
                local_id=local_id,
                status=PrerequisiteStatus.CREATED,
                external_id=external_id,
            )

    async def _create_external(self, source: PrerequisiteSource) -> str:
        note = encode(source.entity_kind, source.local_id)
        match source:
            case User() | Organization():
                return await self.graph.create_agent(
                    source.display_name, note, agent_type=source.AGENT_TYPE
                )
            case ServiceType() | MediumOfExchange():
                return await self.graph.create_resource_specification(
                    source.display_name, note
                )
            case _:
                raise TypeError(f"Unsupported prerequisite source: {type(source).__name__}")

    # ------------------------------------------------------------------
    # recovery

    async def recover_mappings(self) -> RecoveryReport:
        """Restore missing mapping entries from the external graph's annotations.

        Existing entries are never overwritten; a different external id for a
        mapped key is reported as a conflict, and so is every candidate of a
        listing with more than one complete proposal. Restoring a prerequisite
        retries both pending queues.
        """

        scan = await scan_external_annotations(self.graph)
        report = RecoveryReport(
            ignored=scan.ignored, incomplete=scan.incomplete, unavailable=scan.unavailable
        )
        # No awaits until the drains, so no event handler can interleave with these writes.
        for entry in scan.ambiguous:
            if self.mappings.get(entry.entity_kind, entry.local_id) == entry.external_id:
                report.already_mapped += 1
            else:
                report.conflicts.append(entry)
        for entry in scan.entries:
            existing = self.mappings.get(entry.entity_kind, entry.local_id)
            if existing == entry.external_id:
                report.already_mapped += 1
                continue
            if existing is not None:
                log.warning(
                    "Ignoring %s for %s %s; already mapped to %s",
                    entry.external_id,
                    entry.entity_kind,
                    entry.local_id,
                    existing,
                )
                report.conflicts.append(entry)
                continue
            self.mappings.put(entry.entity_kind, entry.local_id, entry.external_id)
            report.restored.append(entry)
            if entry.entity_kind in LISTING_ENTITY_KINDS:
                self.pending.dequeue(ListingKind(entry.entity_kind), entry.local_id)
        log.info(
            "Recovered %s mapping entries (already mapped=%s, conflicts=%s, incomplete=%s)",
            len(report.restored),
            report.already_mapped,
            len(report.conflicts),
            report.incomplete,
        )
        if any(entry.entity_kind not in LISTING_ENTITY_KINDS for entry in report.restored):
            report.retries = (
                await self.drain_and_retry(ListingKind.REQUEST),
                await self.drain_and_retry(ListingKind.OFFER),
            )
        return report

    # ------------------------------------------------------------------
    # helpers

    def _store(self, entity_kind: EntityKind, local_id: str, external_id: str) -> None:
        try:
            self.mappings.put(entity_kind, local_id, external_id)
        except DuplicateMappingError:
            log.exception(
                "Refusing to overwrite mapping for %s %s with %s",
                entity_kind,
                local_id,
                external_id,
            )
            raise

    @staticmethod
    def _lock(locks: dict[LockKey, asyncio.Lock], key: LockKey) -> asyncio.Lock:
        lock = locks.get(key)
        if lock is None:
            lock = locks[key] = asyncio.Lock()
        return lock
