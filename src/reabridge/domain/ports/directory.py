"""Port onto the local entity store for prerequisite sources."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reabridge.domain.model import EntityKind, PrerequisiteSource


@runtime_checkable
class SourceDirectory(Protocol):
    """Read access to users, organizations, service types and mediums of exchange."""

    def get_source(self, entity_kind: EntityKind, local_id: str) -> PrerequisiteSource | None: ...
