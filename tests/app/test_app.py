from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

import pytest

from reabridge.adapters.memory import (
    InMemoryMappingTable,
    InMemoryPendingSet,
    InMemorySourceDirectory,
)
from reabridge.app import (
    ReplaySummary,
    build_engine,
    dispatch_events,
    list_pending,
    recover_mappings,
    replay_event_file,
)
from reabridge.domain.mapping import (
    EventDispatcher,
    EventName,
    GraphClientError,
    ListingOutcome,
    ListingStatus,
    PrerequisiteOutcome,
    PrerequisiteStatus,
    RetryReport,
    SourceApproved,
)
from reabridge.domain.model import EntityKind, ListingKind
from tests.helpers.factories import make_offer, make_request, make_service_type
from tests.helpers.graph import RecordingGraphClient

if TYPE_CHECKING:
    from pathlib import Path


def _write_events(path: Path, records: list[dict[str, Any]]) -> Path:
    path.write_text("\n".join(json.dumps(record) for record in records) + "\n", encoding="utf-8")
    return path


def _listing(local_id: str, title: str, **extra: Any) -> dict[str, Any]:
    return {
        "localId": local_id,
        "title": title,
        "creatorId": "u1",
        "serviceTypeIds": ["st1"],
        "mediumOfExchangeId": "moe1",
        **extra,
    }


def test_replay_maps_listings_once_prerequisites_exist(
    tmp_path: Path,
    graph: RecordingGraphClient,
    mappings: InMemoryMappingTable,
    pending: InMemoryPendingSet,
) -> None:
    path = _write_events(
        tmp_path / "events.jsonl",
        [
            {"event": "request.created", "payload": _listing("r1", "Website redesign")},
            {"event": "offer.created", "payload": _listing("o1", "Logo design")},
            {"event": "user.approved", "payload": {"localId": "u1", "name": "Ada"}},
            {"event": "serviceType.approved", "payload": {"localId": "st1", "name": "Web"}},
            {
                "event": "mediumOfExchange.approved",
                "payload": {"localId": "moe1", "name": "Hours"},
            },
            {"event": "request.created", "payload": _listing("r1", "Website redesign")},
        ],
    )

    summary = replay_event_file(
        path, graph_client_factory=lambda: graph, mappings=mappings, pending=pending
    )

    assert summary.events == 6
    assert summary.listings == {ListingStatus.PENDING: 2, ListingStatus.ALREADY_MAPPED: 1}
    assert summary.prerequisites == {PrerequisiteStatus.CREATED: 3}
    assert summary.retried_mapped == 2
    assert summary.failures == []
    assert sorted(proposal.name for proposal in graph.proposals) == [
        "Offer: Logo design",
        "Request: Website redesign",
    ]
    assert mappings.get(EntityKind.OFFER, "o1") is not None


def test_replay_reports_unknown_sources_and_failures(
    tmp_path: Path,
    graph: RecordingGraphClient,
    mappings: InMemoryMappingTable,
    pending: InMemoryPendingSet,
) -> None:
    directory = InMemorySourceDirectory()
    directory.add(make_service_type())
    graph.fail_next("create_resource_specification")
    path = _write_events(
        tmp_path / "events.jsonl",
        [
            {"event": "user.approved", "payload": "ghost"},
            {"event": "serviceType.approved", "payload": "st1"},
        ],
    )

    summary = replay_event_file(
        path,
        graph_client_factory=lambda: graph,
        mappings=mappings,
        pending=pending,
        directory=directory,
    )

    assert summary.events == 2
    assert summary.prerequisites == {PrerequisiteStatus.FAILED: 1}
    assert len(summary.failures) == 2
    assert summary.failures[0].startswith("user.approved:")
    assert "create_resource_specification rejected" in summary.failures[1]


def test_dispatch_events_continues_after_missing_source(
    graph: RecordingGraphClient,
    mappings: InMemoryMappingTable,
    pending: InMemoryPendingSet,
) -> None:
    engine = build_engine(graph=graph, mappings=mappings, pending=pending)
    events = [
        SourceApproved(name=EventName.USER_APPROVED, local_id="u1"),
        SourceApproved(
            name=EventName.SERVICE_TYPE_APPROVED, local_id="st1", source=make_service_type()
        ),
    ]

    summary = asyncio.run(dispatch_events(events, dispatcher=EventDispatcher(engine)))

    assert summary.prerequisites == {PrerequisiteStatus.CREATED: 1}
    (failure,) = summary.failures
    assert failure.startswith("user.approved: user u1 was approved by id")


def test_build_engine_reads_submit_timeout(
    monkeypatch: pytest.MonkeyPatch,
    graph: RecordingGraphClient,
    mappings: InMemoryMappingTable,
    pending: InMemoryPendingSet,
) -> None:
    monkeypatch.setenv("REABRIDGE_SUBMIT_TIMEOUT", "12")

    engine = build_engine(graph=graph, mappings=mappings, pending=pending)

    assert engine.submit_timeout_seconds == 12.0
    assert engine.mappings is mappings


def test_list_pending_orders_requests_before_offers() -> None:
    pending = InMemoryPendingSet()
    pending.enqueue(make_offer())
    pending.enqueue(make_request())

    assert [listing.local_id for listing in list_pending(pending=pending)] == ["r1", "o1"]
    assert [
        listing.local_id for listing in list_pending(ListingKind.OFFER, pending=pending)
    ] == ["o1"]


def test_recover_mappings_uses_graph_annotations(
    graph: RecordingGraphClient,
    mappings: InMemoryMappingTable,
    pending: InMemoryPendingSet,
) -> None:
    asyncio.run(graph.create_resource_specification("Web", "ref:serviceType:c3Qx"))

    report = recover_mappings(
        graph_client_factory=lambda: graph, mappings=mappings, pending=pending
    )

    assert [entry.local_id for entry in report.restored] == ["st1"]
    assert mappings.get(EntityKind.SERVICE_TYPE, "st1") == graph.resource_specs[0].id


def test_replay_summary_counts_retry_outcomes() -> None:
    retry = RetryReport(listing_kind=ListingKind.REQUEST)
    retry.record(
        ListingOutcome(listing_kind=ListingKind.REQUEST, local_id="r1", status=ListingStatus.MAPPED)
    )
    retry.record(
        ListingOutcome(
            listing_kind=ListingKind.REQUEST,
            local_id="r2",
            status=ListingStatus.FAILED,
            error=GraphClientError("createIntent: rejected"),
        )
    )
    summary = ReplaySummary()

    summary.record(
        PrerequisiteOutcome(
            entity_kind=EntityKind.USER,
            local_id="u1",
            status=PrerequisiteStatus.CREATED,
            retries=(retry,),
        )
    )

    assert summary.prerequisites == {PrerequisiteStatus.CREATED: 1}
    assert summary.retried_mapped == 1
    assert summary.failures == ["request r2: createIntent: rejected"]
