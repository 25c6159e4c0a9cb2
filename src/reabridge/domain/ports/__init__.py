"""Domain port definitions for adapters."""

from __future__ import annotations

from .directory import SourceDirectory
from .graph import GraphClient
from .stores import MappingTable, PendingSet

__all__ = [
    "GraphClient",
    "MappingTable",
    "PendingSet",
    "SourceDirectory",
]
