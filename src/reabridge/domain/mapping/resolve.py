"""Prerequisite lookup for listings.

Pure reads against the mapping table; nothing here talks to the external graph.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from reabridge.domain.model import EntityKind, PrerequisiteCategory

from .contracts import Resolved, Unsatisfied

if TYPE_CHECKING:
    from reabridge.domain.model import Listing
    from reabridge.domain.ports import MappingTable

    from .contracts import Resolution


type AgentPolicy = Callable[[Listing], tuple[EntityKind, str]]


def organization_or_creator(listing: Listing) -> tuple[EntityKind, str]:
    """Publish on behalf of the listing's organization when set, else its creator."""

    if listing.organization_id:
        return EntityKind.ORGANIZATION, listing.organization_id
    return EntityKind.USER, listing.creator_id


def creator_only(listing: Listing) -> tuple[EntityKind, str]:
    return EntityKind.USER, listing.creator_id


@dataclass(slots=True)
class PrerequisiteResolver:
    mappings: MappingTable
    agent_policy: AgentPolicy = field(default=organization_or_creator)

    def __call__(self, listing: Listing) -> Resolution:
        return self.resolve(listing)

    def resolve(self, listing: Listing) -> Resolution:
        missing: set[PrerequisiteCategory] = set()

        agent_kind, agent_local_id = self.agent_policy(listing)
        agent_id = self.mappings.get(agent_kind, agent_local_id)
        if agent_id is None:
            missing.add(PrerequisiteCategory.AGENT)

        spec_ids: list[str] = []
        for service_type_id in listing.unique_service_type_ids:
            spec_id = self.mappings.get(EntityKind.SERVICE_TYPE, service_type_id)
            if spec_id is None:
                missing.add(PrerequisiteCategory.SERVICE_TYPE)
            else:
                spec_ids.append(spec_id)

        medium_spec_id = self.mappings.get(
            EntityKind.MEDIUM_OF_EXCHANGE, listing.medium_of_exchange_id
        )
        if medium_spec_id is None:
            missing.add(PrerequisiteCategory.MEDIUM_OF_EXCHANGE)

        if missing or agent_id is None or medium_spec_id is None:
            return Unsatisfied(missing=frozenset(missing))
        return Resolved(
            agent_id=agent_id,
            resource_spec_ids=tuple(spec_ids),
            medium_of_exchange_spec_id=medium_spec_id,
        )
