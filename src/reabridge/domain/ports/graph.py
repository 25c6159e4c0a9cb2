"""Port for the external economic graph."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from reabridge.domain.model import (
        AgentType,
        ExternalAgent,
        ExternalIntent,
        ExternalProposal,
        ExternalResourceSpec,
        IntentDraft,
    )


@runtime_checkable
class GraphClient(Protocol):
    """Asynchronous create/link/list operations against the external graph.

    Every method raises ``GraphClientError`` on failure. The ``list_*`` reads
    are optional on a given deployment and raise ``MissingCapabilityError``
    when the endpoint does not offer them.
    """

    async def create_agent(self, name: str, note: str, *, agent_type: AgentType) -> str: ...

    async def create_resource_specification(self, name: str, note: str) -> str: ...

    async def create_proposal(self, name: str, note: str) -> str: ...

    async def create_intent(self, intent: IntentDraft) -> str: ...

    async def link_intent_to_proposal(
        self,
        proposal_id: str,
        intent_id: str,
        *,
        reciprocal: bool,
    ) -> None: ...

    async def list_agents(self) -> Sequence[ExternalAgent]: ...

    async def list_resource_specifications(self) -> Sequence[ExternalResourceSpec]: ...

    async def list_proposals(self) -> Sequence[ExternalProposal]: ...

    async def list_intents(self) -> Sequence[ExternalIntent]: ...
