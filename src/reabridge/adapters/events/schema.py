"""Pydantic models for JSON-lines domain event records.

One record per line::

    {"event": "user.approved", "payload": {"localId": "u1", "name": "Ada"}}
    {"event": "serviceType.approved", "payload": "st1"}
    {"event": "request.created", "payload": {"localId": "r1", "title": "...", ...}}

Approval payloads are either a source snapshot or a bare local id.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from reabridge.adapters.snapshots import ListingSnapshot, SourceSnapshot
from reabridge.domain.mapping.events import (
    APPROVAL_EVENT_KINDS,
    LISTING_EVENT_KINDS,
    DomainEvent,
    EventName,
    ListingCreated,
    SourceApproved,
)


class EventRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    event: EventName
    payload: str | dict[str, Any]

    def to_domain(self) -> DomainEvent:
        if self.event in APPROVAL_EVENT_KINDS:
            return self._approval()
        return self._listing()

    def _approval(self) -> SourceApproved:
        entity_kind = APPROVAL_EVENT_KINDS[self.event]
        if isinstance(self.payload, str):
            local_id = self.payload.strip()
            if not local_id:
                raise ValueError(f"{self.event} needs a source snapshot or a local id")
            return SourceApproved(name=self.event, local_id=local_id)
        snapshot = SourceSnapshot.model_validate(self.payload)
        return SourceApproved(
            name=self.event,
            local_id=snapshot.local_id,
            source=snapshot.to_domain(entity_kind),
        )

    def _listing(self) -> ListingCreated:
        if isinstance(self.payload, str):
            raise ValueError(f"{self.event} needs a listing snapshot")
        snapshot = ListingSnapshot.model_validate(self.payload)
        listing_kind = LISTING_EVENT_KINDS[self.event]
        return ListingCreated(name=self.event, listing=snapshot.to_domain(listing_kind))
