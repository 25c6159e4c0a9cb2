"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from reabridge.adapters.events import read_event_file
from reabridge.adapters.graphql import GraphQLGraphClient
from reabridge.adapters.sqlalchemy import SqlAlchemyMappingTable, SqlAlchemyPendingSet, startup
from reabridge.adapters.sqlalchemy.unit_of_work import is_started
from reabridge.config import get_graph_config, get_mapping_config
from reabridge.domain.mapping import (
    EventDispatcher,
    ListingOutcome,
    PrerequisiteOutcome,
    ReconciliationEngine,
    SourceNotFoundError,
)
from reabridge.domain.model import ListingKind

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from reabridge.domain.mapping import DomainEvent, RecoveryReport
    from reabridge.domain.model import Listing
    from reabridge.domain.ports import GraphClient, MappingTable, PendingSet, SourceDirectory

GraphClientFactory = Callable[[], GraphQLGraphClient]


log = getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class ReplaySummary:
    events: int = 0
    listings: Counter[str] = field(default_factory=Counter)
    prerequisites: Counter[str] = field(default_factory=Counter)
    retried_mapped: int = 0
    failures: list[str] = field(default_factory=list)

    def record(self, outcome: ListingOutcome | PrerequisiteOutcome) -> None:
        if isinstance(outcome, ListingOutcome):
            self.listings[outcome.status] += 1
            if outcome.error is not None:
                self.failures.append(f"{outcome.listing_kind} {outcome.local_id}: {outcome.error}")
            return
        self.prerequisites[outcome.status] += 1
        if outcome.error is not None:
            self.failures.append(f"{outcome.entity_kind} {outcome.local_id}: {outcome.error}")
        for report in outcome.retries:
            self.retried_mapped += len(report.mapped)
            self.failures.extend(
                f"{failed.listing_kind} {failed.local_id}: {failed.error}"
                for failed in report.failed
            )


def build_stores() -> tuple[MappingTable, PendingSet]:
    """Return the durable stores, starting the SQLAlchemy adapter when needed."""

    if not is_started():
        startup()
    return SqlAlchemyMappingTable(), SqlAlchemyPendingSet()


def build_engine(
    *,
    graph: GraphClient,
    mappings: MappingTable | None = None,
    pending: PendingSet | None = None,
) -> ReconciliationEngine:
    if mappings is None or pending is None:
        default_mappings, default_pending = build_stores()
        mappings = default_mappings if mappings is None else mappings
        pending = default_pending if pending is None else pending
    return ReconciliationEngine(
        mappings=mappings,
        pending=pending,
        graph=graph,
        submit_timeout_seconds=get_mapping_config().submit_timeout_seconds,
    )


def _default_graph_client() -> GraphQLGraphClient:
    return GraphQLGraphClient(config=get_graph_config())


async def dispatch_events(
    events: Iterable[DomainEvent],
    *,
    dispatcher: EventDispatcher,
) -> ReplaySummary:
    """Dispatch ``events`` in order; unknown sources are reported, not fatal."""

    summary = ReplaySummary()
    for event in events:
        summary.events += 1
        try:
            outcome = await dispatcher.dispatch(event)
        except SourceNotFoundError as exc:
            log.warning("Skipping %s: %s", event.name, exc)
            summary.failures.append(f"{event.name}: {exc}")
            continue
        summary.record(outcome)
    return summary


def replay_event_file(
    path: Path,
    *,
    graph_client_factory: GraphClientFactory | None = None,
    mappings: MappingTable | None = None,
    pending: PendingSet | None = None,
    directory: SourceDirectory | None = None,
) -> ReplaySummary:
    """Dispatch every event of a JSON-lines file against the configured graph."""

    events = read_event_file(path)
    log.info("Starting replay: file=%s, events=%s", path, len(events))

    async def run() -> ReplaySummary:
        async with (graph_client_factory or _default_graph_client)() as graph:
            engine = build_engine(graph=graph, mappings=mappings, pending=pending)
            dispatcher = EventDispatcher(engine=engine, directory=directory)
            return await dispatch_events(events, dispatcher=dispatcher)

    summary = asyncio.run(run())
    log.info(
        "Finished replay: events=%s, listings=%s, prerequisites=%s, retried_mapped=%s, "
        "failures=%s",
        summary.events,
        dict(summary.listings),
        dict(summary.prerequisites),
        summary.retried_mapped,
        len(summary.failures),
    )
    return summary


def list_pending(
    listing_kind: ListingKind | None = None,
    *,
    pending: PendingSet | None = None,
) -> list[Listing]:
    """Return the pending listings of one kind, or of both kinds in request-offer order."""

    store = build_stores()[1] if pending is None else pending
    kinds = (listing_kind,) if listing_kind is not None else tuple(ListingKind)
    return [listing for kind in kinds for listing in store.drain(kind)]


def recover_mappings(
    *,
    graph_client_factory: GraphClientFactory | None = None,
    mappings: MappingTable | None = None,
    pending: PendingSet | None = None,
) -> RecoveryReport:
    """Rebuild missing mapping entries from the external graph's annotations."""

    async def run() -> RecoveryReport:
        async with (graph_client_factory or _default_graph_client)() as graph:
            engine = build_engine(graph=graph, mappings=mappings, pending=pending)
            return await engine.recover_mappings()

    log.info("Starting mapping recovery")
    report = asyncio.run(run())
    log.info(
        "Finished mapping recovery: restored=%s, already_mapped=%s, conflicts=%s, "
        "incomplete=%s, ignored=%s",
        len(report.restored),
        report.already_mapped,
        len(report.conflicts),
        report.incomplete,
        report.ignored,
    )
    return report
