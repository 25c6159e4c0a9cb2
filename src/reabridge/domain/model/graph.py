"""Objects of the external economic graph: drafts to submit and records read back."""

from __future__ import annotations

from dataclasses import dataclass

from reabridge.domain.model.enums import IntentAction

HOUR_UNIT = "hour"


@dataclass(frozen=True, slots=True)
class Quantity:
    value: float
    unit: str = HOUR_UNIT


@dataclass(frozen=True, slots=True, kw_only=True)
class ProposalDraft:
    name: str
    note: str


@dataclass(frozen=True, slots=True, kw_only=True)
class IntentDraft:
    """One intent of a proposal; exactly one of ``provider``/``receiver`` is set."""

    action: IntentAction
    resource_conforms_to: str
    reciprocal: bool
    provider: str | None = None
    receiver: str | None = None
    quantity: Quantity | None = None
    note: str | None = None

    def __post_init__(self) -> None:
        if (self.provider is None) == (self.receiver is None):
            raise ValueError("Intent requires exactly one of provider or receiver")

    @property
    def agent_id(self) -> str:
        if self.provider is not None:
            return self.provider
        if self.receiver is not None:
            return self.receiver
        raise ValueError("Intent has neither provider nor receiver")


@dataclass(frozen=True, slots=True, kw_only=True)
class ExchangeGraph:
    """Proposal plus its primary (service) intents and the reciprocal (payment) intent."""

    proposal: ProposalDraft
    primary_intents: tuple[IntentDraft, ...]
    reciprocal_intent: IntentDraft

    @property
    def intents(self) -> tuple[IntentDraft, ...]:
        return (*self.primary_intents, self.reciprocal_intent)


@dataclass(frozen=True, slots=True, kw_only=True)
class ExternalAgent:
    id: str
    name: str
    note: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ExternalResourceSpec:
    id: str
    name: str
    note: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ExternalProposal:
    """Proposal read back from the graph.

    ``reciprocal_flags`` holds the ``reciprocal`` flag of every intent the
    proposal publishes, in link order.
    """

    id: str
    name: str
    note: str | None = None
    reciprocal_flags: tuple[bool, ...] = ()

    @property
    def is_complete(self) -> bool:
        """At least one primary intent and exactly one reciprocal intent are linked."""
        reciprocal = sum(self.reciprocal_flags)
        return reciprocal == 1 and len(self.reciprocal_flags) > 1


@dataclass(frozen=True, slots=True, kw_only=True)
class ExternalIntent:
    id: str
    action: str
    provider: str | None = None
    receiver: str | None = None
    resource_conforms_to: str | None = None
    note: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class SubmittedGraph:
    """External ids produced by one successful submission."""

    proposal_id: str
    primary_intent_ids: tuple[str, ...]
    reciprocal_intent_id: str

    @property
    def intent_ids(self) -> tuple[str, ...]:
        return (*self.primary_intent_ids, self.reciprocal_intent_id)
