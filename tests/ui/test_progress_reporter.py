from __future__ import annotations

import io

import pytest
from rich.console import Console

from kitwatch.engine import Candidate, CandidateResult, Outcome
from kitwatch.ui import ProgressReporter


def _result(outcome: Outcome, url: str = "http://evil.example/kit.zip") -> CandidateResult:
    return CandidateResult(Candidate(url), outcome)


def test_advance_requires_start() -> None:
    with pytest.raises(RuntimeError):
        ProgressReporter(enabled=False).advance(_result(Outcome.REPORTED))


def test_counters_without_terminal() -> None:
    console = Console(file=io.StringIO(), force_terminal=False)
    reporter = ProgressReporter(enabled=True, console=console)
    reporter.start(total=4)

    for outcome in (Outcome.REPORTED, Outcome.DUPLICATE, Outcome.VALIDATION_FAILED, Outcome.ACQUIRE_FAILED):
        reporter.advance(_result(outcome))
    reporter.close()

    assert reporter.enabled is False
    assert reporter.summary() == {"reported": 1, "duplicate": 1, "failed": 2}
    assert reporter.state.completed == 4
    assert reporter.state.current_url == "http://evil.example/kit.zip"


def test_renders_on_terminal() -> None:
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=True, width=160)
    reporter = ProgressReporter(enabled=True, label="manual", console=console)
    reporter.start(total=None)

    reporter.advance(_result(Outcome.REPORTED, "http://evil.example/" + "x" * 80 + ".zip"))
    reporter.close()

    assert reporter.enabled is True
    assert reporter.summary()["reported"] == 1


def test_summary_before_start() -> None:
    assert ProgressReporter().summary() == {"reported": 0, "duplicate": 0, "failed": 0}
