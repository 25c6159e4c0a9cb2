"""GraphQL-over-HTTP implementation of the graph client port."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, Self

import httpx
from pydantic import ValidationError

from reabridge.adapters.http_resilience import ResilientClient
from reabridge.domain.mapping.errors import GraphClientError, MissingCapabilityError
from reabridge.domain.model import (
    AgentType,
    ExternalAgent,
    ExternalIntent,
    ExternalProposal,
    ExternalResourceSpec,
)

from . import documents
from .schema import (
    AgentNode,
    AgentPayload,
    Connection,
    GraphQLResponse,
    IntentNode,
    IntentPayload,
    ProposalNode,
    ProposalPayload,
    ProposeIntentPayload,
    ResourceSpecificationNode,
    ResourceSpecificationPayload,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from pydantic import BaseModel

    from reabridge.config.graph import GraphConfig
    from reabridge.config.http_resilience import ResilienceConfig
    from reabridge.domain.model import IntentDraft

log = getLogger(__name__)


class GraphQLGraphClient:
    """Talks to a ValueFlows GraphQL endpoint.

    Used as an async context manager, one HTTP client is shared by every call
    (and so is its rate limiter). Outside a context each call opens a
    short-lived client.
    """

    def __init__(
        self,
        *,
        config: GraphConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._endpoint = config.endpoint
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._shared: ResilientClient | None = None

    async def __aenter__(self) -> Self:
        self._shared = self._client_factory(self._resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._shared is not None:
            shared, self._shared = self._shared, None
            await shared.aclose()

    # mutations

    async def create_agent(self, name: str, note: str, *, agent_type: AgentType) -> str:
        agent = {"name": name, "note": note}
        if agent_type is AgentType.ORGANIZATION:
            operation = "createOrganization"
            data = await self._execute(
                operation, documents.CREATE_ORGANIZATION, {"organization": agent}
            )
        else:
            operation = "createPerson"
            data = await self._execute(operation, documents.CREATE_PERSON, {"person": agent})
        return _parse(operation, AgentPayload, data).agent.id

    async def create_resource_specification(self, name: str, note: str) -> str:
        data = await self._execute(
            "createResourceSpecification",
            documents.CREATE_RESOURCE_SPECIFICATION,
            {"resourceSpecification": {"name": name, "note": note}},
        )
        payload = _parse("createResourceSpecification", ResourceSpecificationPayload, data)
        return payload.resource_specification.id

    async def create_proposal(self, name: str, note: str) -> str:
        data = await self._execute(
            "createProposal",
            documents.CREATE_PROPOSAL,
            {"proposal": {"name": name, "note": note}},
        )
        return _parse("createProposal", ProposalPayload, data).proposal.id

    async def create_intent(self, intent: IntentDraft) -> str:
        data = await self._execute(
            "createIntent",
            documents.CREATE_INTENT,
            {"intent": intent_create_params(intent)},
        )
        return _parse("createIntent", IntentPayload, data).intent.id

    async def link_intent_to_proposal(
        self,
        proposal_id: str,
        intent_id: str,
        *,
        reciprocal: bool,
    ) -> None:
        data = await self._execute(
            "proposeIntent",
            documents.PROPOSE_INTENT,
            {"publishedIn": proposal_id, "publishes": intent_id, "reciprocal": reciprocal},
        )
        _parse("proposeIntent", ProposeIntentPayload, data)

    # reads

    async def list_agents(self) -> list[ExternalAgent]:
        data = await self._execute("agents", documents.LIST_AGENTS)
        return [
            ExternalAgent(id=node.id, name=node.name, note=node.note)
            for node in _parse("agents", Connection[AgentNode], data).nodes
        ]

    async def list_resource_specifications(self) -> list[ExternalResourceSpec]:
        data = await self._execute(
            "resourceSpecifications", documents.LIST_RESOURCE_SPECIFICATIONS
        )
        connection = _parse("resourceSpecifications", Connection[ResourceSpecificationNode], data)
        return [
            ExternalResourceSpec(id=node.id, name=node.name, note=node.note)
            for node in connection.nodes
        ]

    async def list_proposals(self) -> list[ExternalProposal]:
        data = await self._execute("proposals", documents.LIST_PROPOSALS)
        connection = _parse("proposals", Connection[ProposalNode], data)
        return [_to_external_proposal(node) for node in connection.nodes]

    async def list_intents(self) -> list[ExternalIntent]:
        data = await self._execute("intents", documents.LIST_INTENTS)
        connection = _parse("intents", Connection[IntentNode], data)
        return [_to_external_intent(node) for node in connection.nodes]

    # transport

    async def _execute(
        self,
        field: str,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> Any:
        body: dict[str, Any] = {"query": query}
        if variables is not None:
            body["variables"] = variables

        try:
            if self._shared is not None:
                response = await self._shared.post(self._endpoint, json=body)
            else:
                async with self._client_factory(self._resilience) as client:
                    response = await client.post(self._endpoint, json=body)
        except httpx.HTTPError as exc:
            raise GraphClientError(f"{field}: {exc}", operation=field) from exc

        envelope = _read_envelope(field, response)

        if envelope.errors:
            if any(error.unknown_query_field == field for error in envelope.errors):
                raise MissingCapabilityError(
                    f"Endpoint does not expose {field!r}", operation=field
                )
            messages = "; ".join(error.message for error in envelope.errors)
            raise GraphClientError(f"{field}: {messages}", operation=field)

        if envelope.data is None or envelope.data.get(field) is None:
            raise GraphClientError(f"{field}: response has no data", operation=field)
        log.debug("GraphQL %s succeeded", field)
        return envelope.data[field]


def intent_create_params(intent: IntentDraft) -> dict[str, Any]:
    params: dict[str, Any] = {
        "action": str(intent.action),
        "resourceConformsTo": intent.resource_conforms_to,
    }
    if intent.provider is not None:
        params["provider"] = intent.provider
    if intent.receiver is not None:
        params["receiver"] = intent.receiver
    if intent.quantity is not None:
        params["resourceQuantity"] = {
            "hasNumericalValue": intent.quantity.value,
            "hasUnit": intent.quantity.unit,
        }
    if intent.note is not None:
        params["note"] = intent.note
    return params


def _parse[M: BaseModel](operation: str, model: type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise GraphClientError(
            f"{operation}: response does not match the expected shape", operation=operation
        ) from exc


def _to_external_proposal(node: ProposalNode) -> ExternalProposal:
    # An unset flag is the schema default: a primary intent.
    return ExternalProposal(
        id=node.id,
        name=node.name or "",
        note=node.note,
        reciprocal_flags=tuple(bool(link.reciprocal) for link in node.publishes or ()),
    )


def _to_external_intent(node: IntentNode) -> ExternalIntent:
    return ExternalIntent(
        id=node.id,
        action=node.action.id,
        provider=node.provider.id if node.provider else None,
        receiver=node.receiver.id if node.receiver else None,
        resource_conforms_to=node.resource_conforms_to.id if node.resource_conforms_to else None,
        note=node.note,
    )


def _read_envelope(field: str, response: httpx.Response) -> GraphQLResponse:
    # Validation failures (unknown fields) usually come back as HTTP 400 with
    # a regular GraphQL error body.
    try:
        envelope = GraphQLResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        envelope = None
    if response.is_error and (envelope is None or not envelope.errors):
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise GraphClientError(f"{field}: {exc}", operation=field) from exc
    if envelope is None:
        raise GraphClientError(f"{field}: unexpected response envelope", operation=field)
    return envelope
