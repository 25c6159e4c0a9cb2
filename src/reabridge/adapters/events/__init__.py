"""JSON-lines domain event adapter."""

from __future__ import annotations

from .reader import EventFileError, iter_events, parse_event_line, read_event_file
from .schema import EventRecord

__all__ = [
    "EventFileError",
    "EventRecord",
    "iter_events",
    "parse_event_line",
    "read_event_file",
]
