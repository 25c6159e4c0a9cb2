"""Error taxonomy for the mapping core.

``Unsatisfied`` prerequisites are not errors; they are returned as values by
the resolver and lead to the listing being parked in the pending set.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reabridge.domain.model import EntityKind


class MappingError(RuntimeError):
    """Base class for mapping failures."""


class DuplicateMappingError(MappingError):
    """Raised when a mapping entry already exists for a key. Never overwrite."""

    def __init__(self, entity_kind: EntityKind, local_id: str, existing_id: str) -> None:
        super().__init__(
            f"Mapping already exists for {entity_kind}:{local_id} -> {existing_id}"
        )
        self.entity_kind = entity_kind
        self.local_id = local_id
        self.existing_id = existing_id


class InvalidListingError(MappingError, ValueError):
    """Raised when a listing cannot be expressed as an exchange graph."""


class ReferenceParseError(MappingError, ValueError):
    """Raised when an annotation string is not a valid reference."""


class GraphClientError(MappingError):
    """Raised for failures talking to the external graph.

    Covers transport errors, schema mismatches and validation rejections.
    """

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class MissingCapabilityError(GraphClientError):
    """Raised when the external graph does not expose an optional read operation."""


class SourceNotFoundError(MappingError, LookupError):
    """Raised when an approval event names a source the local store does not know."""


class UnknownEventError(MappingError, ValueError):
    """Raised for an event name with no registered handler."""
