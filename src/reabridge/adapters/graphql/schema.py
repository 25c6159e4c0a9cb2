"""Response schemas for the ValueFlows GraphQL API."""

from __future__ import annotations

import logging
import re
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)

_UNKNOWN_QUERY_FIELD_RE = re.compile(
    r"""Cannot query field ["']?(?P<field>\w+)["']? on type ["']?Query["']?"""
)


class GraphQLBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "GraphQL %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class GraphQLError(GraphQLBaseModel):
    message: str
    path: list[str | int] | None = None

    @property
    def unknown_query_field(self) -> str | None:
        match = _UNKNOWN_QUERY_FIELD_RE.search(self.message)
        return match.group("field") if match else None


class GraphQLResponse(GraphQLBaseModel):
    """Standard ``{"data": ..., "errors": [...]}`` envelope."""

    model_config = ConfigDict(extra="ignore")

    data: dict[str, Any] | None = None
    errors: list[GraphQLError] = Field(default_factory=list)


class NodeRef(GraphQLBaseModel):
    id: str


class AgentNode(GraphQLBaseModel):
    id: str
    name: str
    note: str | None = None


class ResourceSpecificationNode(GraphQLBaseModel):
    id: str
    name: str
    note: str | None = None


class ProposedIntentNode(GraphQLBaseModel):
    id: str
    reciprocal: bool | None = None


class ProposalNode(GraphQLBaseModel):
    id: str
    name: str | None = None
    note: str | None = None
    publishes: list[ProposedIntentNode] | None = None


class IntentNode(GraphQLBaseModel):
    id: str
    action: NodeRef
    provider: NodeRef | None = None
    receiver: NodeRef | None = None
    resource_conforms_to: NodeRef | None = Field(default=None, alias="resourceConformsTo")
    note: str | None = None


class AgentPayload(GraphQLBaseModel):
    agent: AgentNode


class ResourceSpecificationPayload(GraphQLBaseModel):
    resource_specification: ResourceSpecificationNode = Field(alias="resourceSpecification")


class ProposalPayload(GraphQLBaseModel):
    proposal: ProposalNode


class IntentPayload(GraphQLBaseModel):
    intent: IntentNode


class ProposeIntentPayload(GraphQLBaseModel):
    proposed_intent: ProposedIntentNode = Field(alias="proposedIntent")


NodeT = TypeVar("NodeT", bound=GraphQLBaseModel)


class Edge(GraphQLBaseModel, Generic[NodeT]):
    node: NodeT


class Connection(GraphQLBaseModel, Generic[NodeT]):
    edges: list[Edge[NodeT]] = Field(default_factory=list)

    @property
    def nodes(self) -> list[NodeT]:
        return [edge.node for edge in self.edges]
