"""Rebuild mapping entries from annotations stored in the external graph.

Agents and resource specifications carry ``ref:<kind>:<id>`` notes naming
their local source; proposals carry ``ref:proposal:<id>`` and a name prefixed
with the listing kind. Anything else is ignored.

A proposal only counts once its intents are linked: at least one primary and
exactly one reciprocal. An interrupted submission leaves a proposal with the
same annotation behind, so partially linked proposals are skipped, and two
complete proposals for one listing are reported as ambiguous.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from reabridge.domain.model import EntityKind, ListingKind

from .contracts import RecoveredMapping
from .errors import MissingCapabilityError
from .references import try_decode

if TYPE_CHECKING:
    from reabridge.domain.ports import GraphClient


log = getLogger(__name__)

AGENT_KINDS = frozenset({EntityKind.USER, EntityKind.ORGANIZATION})
RESOURCE_SPEC_KINDS = frozenset({EntityKind.SERVICE_TYPE, EntityKind.MEDIUM_OF_EXCHANGE})


@dataclass(slots=True, kw_only=True)
class AnnotationScan:
    entries: list[RecoveredMapping] = field(default_factory=list)
    ambiguous: list[RecoveredMapping] = field(default_factory=list)
    ignored: int = 0
    incomplete: int = 0
    unavailable: list[str] = field(default_factory=list)

    def add(
        self,
        note: str | None,
        external_id: str,
        *,
        allowed: frozenset[EntityKind],
    ) -> None:
        decoded = try_decode(note)
        if decoded is None or decoded[0] not in allowed:
            self.ignored += 1
            return
        kind, local_id = decoded
        self.entries.append(
            RecoveredMapping(entity_kind=kind, local_id=local_id, external_id=external_id)
        )


def listing_kind_from_proposal_name(name: str) -> ListingKind | None:
    for kind in ListingKind:
        if name.startswith(f"{kind.label}: "):
            return kind
    return None


async def scan_external_annotations(graph: GraphClient) -> AnnotationScan:
    """Collect every decodable annotation the graph exposes.

    Missing read operations are recorded in ``unavailable`` and skipped.
    """

    scan = AnnotationScan()

    for agent in await _read(scan, "agents", graph.list_agents):
        scan.add(agent.note, agent.id, allowed=AGENT_KINDS)

    for spec in await _read(scan, "resourceSpecifications", graph.list_resource_specifications):
        scan.add(spec.note, spec.id, allowed=RESOURCE_SPEC_KINDS)

    candidates: dict[tuple[EntityKind, str], list[str]] = {}
    for proposal in await _read(scan, "proposals", graph.list_proposals):
        decoded = try_decode(proposal.note)
        listing_kind = listing_kind_from_proposal_name(proposal.name)
        if decoded is None or decoded[0] is not EntityKind.PROPOSAL or listing_kind is None:
            scan.ignored += 1
            continue
        if not proposal.is_complete:
            log.debug("Skipping partially linked proposal %s for %s", proposal.id, proposal.note)
            scan.incomplete += 1
            continue
        key = (listing_kind.entity_kind, decoded[1])
        candidates.setdefault(key, []).append(proposal.id)

    for (entity_kind, local_id), proposal_ids in candidates.items():
        found = [
            RecoveredMapping(entity_kind=entity_kind, local_id=local_id, external_id=proposal_id)
            for proposal_id in proposal_ids
        ]
        if len(found) == 1:
            scan.entries.extend(found)
        else:
            log.warning(
                "%s %s has %s complete proposals: %s",
                entity_kind,
                local_id,
                len(found),
                ", ".join(proposal_ids),
            )
            scan.ambiguous.extend(found)

    log.info(
        "Scanned external annotations: found=%s, ambiguous=%s, incomplete=%s, ignored=%s, "
        "unavailable=%s",
        len(scan.entries),
        len(scan.ambiguous),
        scan.incomplete,
        scan.ignored,
        scan.unavailable,
    )
    return scan


async def _read[T](
    scan: AnnotationScan,
    label: str,
    read: Callable[[], Awaitable[Sequence[T]]],
) -> Sequence[T]:
    try:
        return await read()
    except MissingCapabilityError:
        log.debug("External graph does not expose %s; skipping", label)
        scan.unavailable.append(label)
        return ()
