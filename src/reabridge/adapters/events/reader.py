"""Read domain events from JSON-lines files."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from .schema import EventRecord

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

    from reabridge.domain.mapping.events import DomainEvent

log = getLogger(__name__)


class EventFileError(ValueError):
    """Raised for a line that is not a valid event record."""

    def __init__(self, message: str, *, line_number: int) -> None:
        super().__init__(f"line {line_number}: {message}")
        self.line_number = line_number


def parse_event_line(line: str) -> DomainEvent:
    """Parse one JSON record into a domain event."""

    return EventRecord.model_validate_json(line).to_domain()


def iter_events(lines: Iterable[str]) -> Iterator[DomainEvent]:
    """Yield events from ``lines``; blank lines and ``#`` comments are skipped."""

    for line_number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        try:
            yield parse_event_line(line)
        except (ValidationError, ValueError) as exc:
            raise EventFileError(str(exc), line_number=line_number) from exc


def read_event_file(path: Path) -> list[DomainEvent]:
    with path.open(encoding="utf-8") as handle:
        events = list(iter_events(handle))
    log.debug("Read %s events from %s", len(events), path)
    return events
