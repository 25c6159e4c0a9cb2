"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    """Discriminator for every local entity that can own a mapping entry."""

    USER = "user"
    ORGANIZATION = "organization"
    SERVICE_TYPE = "serviceType"
    MEDIUM_OF_EXCHANGE = "mediumOfExchange"

    # Listing proposals are keyed by their listing kind in the mapping table.
    REQUEST = "request"
    OFFER = "offer"

    # Annotation-only kind used on proposal notes.
    PROPOSAL = "proposal"


class ListingKind(StrEnum):
    REQUEST = "request"
    OFFER = "offer"

    @property
    def entity_kind(self) -> EntityKind:
        return EntityKind(self.value)

    @property
    def label(self) -> str:
        return self.value.capitalize()


class ApprovalStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PrerequisiteCategory(StrEnum):
    """Prerequisite categories a listing needs before its proposal can exist."""

    AGENT = "agent"
    SERVICE_TYPE = "serviceType"
    MEDIUM_OF_EXCHANGE = "mediumOfExchange"


class AgentType(StrEnum):
    PERSON = "person"
    ORGANIZATION = "organization"


class IntentAction(StrEnum):
    """ValueFlows actions used by listing intents."""

    WORK = "work"
    TRANSFER = "transfer"
