"""ValueFlows GraphQL adapter for the external economic graph."""

from __future__ import annotations

from .client import GraphQLGraphClient, intent_create_params

__all__ = ["GraphQLGraphClient", "intent_create_params"]
