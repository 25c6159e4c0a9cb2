from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

import pytest

from reabridge.adapters.events import EventFileError
from reabridge.app import ReplaySummary
from reabridge.config import MissingConfigurationError
from reabridge.domain.mapping import (
    ListingOutcome,
    ListingStatus,
    RecoveredMapping,
    RecoveryReport,
    RetryReport,
)
from reabridge.domain.model import EntityKind, ListingKind
from reabridge.ui import cli
from tests.helpers.factories import make_offer

if TYPE_CHECKING:
    from pathlib import Path


def _run(argv: list[str]) -> int | str | None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    return excinfo.value.code


def test_replay_prints_summary(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    captured: list[Path] = []

    def fake_replay(path: Path) -> ReplaySummary:
        captured.append(path)
        return ReplaySummary(
            events=3,
            listings=Counter({"pending": 1}),
            prerequisites=Counter({"created": 2}),
            retried_mapped=1,
            failures=["offer o1: boom"],
        )

    monkeypatch.setattr(cli, "replay_event_file", fake_replay)

    assert _run(["replay", str(tmp_path / "events.jsonl")]) == 0

    assert captured == [tmp_path / "events.jsonl"]
    out = capsys.readouterr().out
    assert "events: 3" in out
    assert "listings pending: 1" in out
    assert "prerequisites created: 2" in out
    assert "mapped on retry: 1" in out
    assert "failed: offer o1: boom" in out


def test_pending_filters_by_kind(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    kinds: list[ListingKind | None] = []

    def fake_list_pending(listing_kind: ListingKind | None = None) -> list[object]:
        kinds.append(listing_kind)
        return [make_offer()]

    monkeypatch.setattr(cli, "list_pending", fake_list_pending)

    assert _run(["pending", "--kind", "offer"]) == 0

    assert kinds == [ListingKind.OFFER]
    out = capsys.readouterr().out
    assert "offer\to1\tLogo design" in out
    assert "1 pending" in out


def test_pending_rejects_unknown_kind() -> None:
    assert _run(["pending", "--kind", "proposal"]) == 2


def test_recover_prints_report(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    retry = RetryReport(listing_kind=ListingKind.REQUEST)
    retry.record(
        ListingOutcome(listing_kind=ListingKind.REQUEST, local_id="r1", status=ListingStatus.MAPPED)
    )
    report = RecoveryReport(
        restored=[RecoveredMapping(entity_kind=EntityKind.USER, local_id="u1", external_id="a")],
        already_mapped=2,
        ignored=1,
        unavailable=["proposals"],
        incomplete=3,
        retries=(retry, RetryReport(listing_kind=ListingKind.OFFER)),
    )
    monkeypatch.setattr(cli, "recover_mappings", lambda: report)

    assert _run(["recover"]) == 0

    out = capsys.readouterr().out
    assert "restored: 1" in out
    assert "already mapped: 2" in out
    assert "unavailable reads: proposals" in out
    assert "incomplete proposals: 3" in out
    assert "retried request: mapped=1" in out
    assert "retried offer" not in out


@pytest.mark.parametrize(
    "error",
    [
        MissingConfigurationError("Missing configuration for: REABRIDGE_GRAPH_URL"),
        EventFileError("bad record", line_number=4),
        FileNotFoundError("events.jsonl"),
    ],
)
def test_usage_errors_exit_with_two(monkeypatch: pytest.MonkeyPatch, error: Exception) -> None:
    def fail(_path: Path) -> ReplaySummary:
        raise error

    monkeypatch.setattr(cli, "replay_event_file", fail)

    assert _run(["replay", "events.jsonl"]) == 2


def test_unexpected_errors_exit_with_one(monkeypatch: pytest.MonkeyPatch) -> None:
    def fail() -> RecoveryReport:
        raise RuntimeError("database is locked")

    monkeypatch.setattr(cli, "recover_mappings", fail)

    assert _run(["recover"]) == 1


def test_command_is_required() -> None:
    assert _run([]) == 2
