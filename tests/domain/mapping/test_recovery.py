from __future__ import annotations

import asyncio

from reabridge.adapters.memory import InMemoryMappingTable, InMemoryPendingSet
from reabridge.domain.mapping import ListingStatus, ReconciliationEngine, RecoveredMapping, encode
from reabridge.domain.mapping.recovery import (
    listing_kind_from_proposal_name,
    scan_external_annotations,
)
from reabridge.domain.model import AgentType, EntityKind, ListingKind
from tests.helpers.factories import make_medium, make_request, make_service_type, make_user
from tests.helpers.graph import RecordingGraphClient


def _fresh_engine(graph: RecordingGraphClient) -> ReconciliationEngine:
    return ReconciliationEngine(
        mappings=InMemoryMappingTable(),
        pending=InMemoryPendingSet(),
        graph=graph,
    )


async def _approve_sources(engine: ReconciliationEngine) -> None:
    for source in (make_user(), make_service_type(), make_medium()):
        await engine.on_prerequisite_approved(source)


def _populate(graph: RecordingGraphClient) -> None:
    """Create annotated objects the way a previous process would have."""

    async def run() -> None:
        previous = _fresh_engine(graph)
        await _approve_sources(previous)
        await previous.on_listing_created(make_request())
        await graph.create_agent("Stranger", "imported by hand", agent_type=AgentType.PERSON)
        await graph.create_resource_specification("Bad kind", encode(EntityKind.USER, "u7"))

    asyncio.run(run())


def test_listing_kind_from_proposal_name() -> None:
    assert listing_kind_from_proposal_name("Request: Website redesign") is ListingKind.REQUEST
    assert listing_kind_from_proposal_name("Offer: Logo") is ListingKind.OFFER
    assert listing_kind_from_proposal_name("Offering: Logo") is None


def test_scan_collects_annotated_objects(graph: RecordingGraphClient) -> None:
    _populate(graph)

    scan = asyncio.run(scan_external_annotations(graph))

    kinds = sorted((entry.entity_kind, entry.local_id) for entry in scan.entries)
    assert kinds == sorted(
        [
            (EntityKind.USER, "u1"),
            (EntityKind.SERVICE_TYPE, "st1"),
            (EntityKind.MEDIUM_OF_EXCHANGE, "moe1"),
            (EntityKind.REQUEST, "r1"),
        ]
    )
    assert scan.ignored == 2
    assert scan.unavailable == []


def test_scan_skips_unavailable_reads(graph: RecordingGraphClient) -> None:
    _populate(graph)
    graph.missing_reads.update({"list_agents", "list_proposals"})

    scan = asyncio.run(scan_external_annotations(graph))

    assert scan.unavailable == ["agents", "proposals"]
    assert {entry.entity_kind for entry in scan.entries} == {
        EntityKind.SERVICE_TYPE,
        EntityKind.MEDIUM_OF_EXCHANGE,
    }


def test_recover_restores_lost_mappings(
    engine: ReconciliationEngine,
    graph: RecordingGraphClient,
    mappings: InMemoryMappingTable,
) -> None:
    _populate(graph)
    mutations_before = graph.mutation_count

    report = asyncio.run(engine.recover_mappings())

    assert len(report.restored) == 4
    assert report.already_mapped == 0
    assert report.conflicts == []
    assert mappings.get(EntityKind.REQUEST, "r1") == graph.proposals[0].id
    assert mappings.get(EntityKind.USER, "u1") == graph.agents[0].id
    assert graph.mutation_count == mutations_before


def test_recovered_listing_is_not_resubmitted(
    engine: ReconciliationEngine,
    graph: RecordingGraphClient,
    pending: InMemoryPendingSet,
) -> None:
    _populate(graph)
    pending.enqueue(make_request())

    asyncio.run(engine.recover_mappings())
    outcome = asyncio.run(engine.on_listing_created(make_request()))

    assert not pending.contains(ListingKind.REQUEST, "r1")
    assert outcome.proposal_id == graph.proposals[0].id
    assert graph.count("create_proposal") == 1


def test_recover_keeps_existing_entries(
    engine: ReconciliationEngine,
    graph: RecordingGraphClient,
    mappings: InMemoryMappingTable,
) -> None:
    _populate(graph)
    mappings.put(EntityKind.USER, "u1", graph.agents[0].id)
    mappings.put(EntityKind.SERVICE_TYPE, "st1", "spec-elsewhere")

    report = asyncio.run(engine.recover_mappings())

    assert report.already_mapped == 1
    assert report.conflicts == [
        RecoveredMapping(
            entity_kind=EntityKind.SERVICE_TYPE,
            local_id="st1",
            external_id=graph.resource_specs[0].id,
        )
    ]
    assert mappings.get(EntityKind.SERVICE_TYPE, "st1") == "spec-elsewhere"
    assert len(report.restored) == 2


def test_recover_skips_partially_linked_proposal(graph: RecordingGraphClient) -> None:
    previous = _fresh_engine(graph)

    async def run() -> list[ListingStatus]:
        await _approve_sources(previous)
        graph.fail_next("link_intent_to_proposal")
        failed = await previous.on_listing_created(make_request())
        mapped = await previous.on_listing_created(make_request())
        return [failed.status, mapped.status]

    assert asyncio.run(run()) == [ListingStatus.FAILED, ListingStatus.MAPPED]
    orphan, complete = graph.proposals
    assert previous.mappings.get(EntityKind.REQUEST, "r1") == complete.id

    restored = _fresh_engine(graph)
    report = asyncio.run(restored.recover_mappings())

    assert restored.mappings.get(EntityKind.REQUEST, "r1") == complete.id
    assert orphan.id not in {entry.external_id for entry in report.restored}
    assert report.incomplete == 1
    assert report.conflicts == []


def test_recover_reports_every_complete_proposal_of_a_listing(
    engine: ReconciliationEngine,
    graph: RecordingGraphClient,
    mappings: InMemoryMappingTable,
) -> None:
    async def run() -> None:
        first = _fresh_engine(graph)
        await _approve_sources(first)
        await first.on_listing_created(make_request())
        # A second process that lost only the listing entry maps it again.
        second = _fresh_engine(graph)
        for source in (make_user(), make_service_type(), make_medium()):
            external_id = first.mappings.get(source.entity_kind, source.local_id)
            assert external_id is not None
            second.mappings.put(source.entity_kind, source.local_id, external_id)
        await second.on_listing_created(make_request())

    asyncio.run(run())
    first, second = graph.proposals

    report = asyncio.run(engine.recover_mappings())

    assert mappings.get(EntityKind.REQUEST, "r1") is None
    assert [entry.external_id for entry in report.conflicts] == [first.id, second.id]
    assert {entry.entity_kind for entry in report.conflicts} == {EntityKind.REQUEST}
    assert report.incomplete == 0


def test_restored_prerequisites_retry_pending_listings(
    engine: ReconciliationEngine,
    graph: RecordingGraphClient,
    mappings: InMemoryMappingTable,
    pending: InMemoryPendingSet,
) -> None:
    asyncio.run(_approve_sources(_fresh_engine(graph)))
    parked = asyncio.run(engine.on_listing_created(make_request()))
    assert parked.status is ListingStatus.PENDING

    report = asyncio.run(engine.recover_mappings())

    assert len(report.restored) == 3
    request_retry, offer_retry = report.retries
    assert [outcome.local_id for outcome in request_retry.mapped] == ["r1"]
    assert offer_retry.attempted == 0
    assert mappings.get(EntityKind.REQUEST, "r1") == graph.proposals[0].id
    assert not pending.contains(ListingKind.REQUEST, "r1")


def test_recovering_only_listings_does_not_drain(
    engine: ReconciliationEngine,
    graph: RecordingGraphClient,
    mappings: InMemoryMappingTable,
) -> None:
    _populate(graph)
    for entity_kind, local_id, external_id in (
        (EntityKind.USER, "u1", graph.agents[0].id),
        (EntityKind.SERVICE_TYPE, "st1", graph.resource_specs[0].id),
        (EntityKind.MEDIUM_OF_EXCHANGE, "moe1", graph.resource_specs[1].id),
    ):
        mappings.put(entity_kind, local_id, external_id)

    report = asyncio.run(engine.recover_mappings())

    assert [entry.entity_kind for entry in report.restored] == [EntityKind.REQUEST]
    assert report.retries == ()
