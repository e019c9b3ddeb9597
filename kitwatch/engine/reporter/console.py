"""Rich console output for candidate outcomes."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.table import Table

from ..results import CandidateResult, Outcome, RunSummary
from .base import BaseReporter

_OUTCOME_LABELS = {
    Outcome.REPORTED: "Reported",
    Outcome.DUPLICATE: "Duplicate",
    Outcome.VALIDATION_FAILED: "Validation failed",
    Outcome.ACQUIRE_FAILED: "Download failed",
}


def describe(result: CandidateResult) -> str:
    """Human readable one-liner for a result."""

    if result.outcome is Outcome.REPORTED:
        if result.kit is not None:
            return f"it might contain a phishing kit: {result.kit.filename_with_size}"
        return "it might contain a phishing kit (not downloaded)"
    if result.outcome is Outcome.DUPLICATE:
        return "already seen"
    if result.outcome is Outcome.ACQUIRE_FAILED:
        return f"download failed ({result.error})"
    check = result.validation.failed_check if result.validation else None
    return f"not a phishing kit ({check or result.error or 'invalid'})"


class ConsoleReporter(BaseReporter):
    """Print confirmed kits in red; other outcomes only when ``show_all``."""

    def __init__(
        self, console: Console | None = None, show_all: bool = False, show_summary: bool = True
    ) -> None:
        self.console = console or Console()
        self.show_all = show_all
        self.show_summary = show_summary

    def report(self, result: CandidateResult) -> None:
        if result.confirmed:
            self.console.print(f"{result.candidate.url}: {describe(result)}", style="bold red", markup=False)
        elif self.show_all:
            self.console.print(f"{result.candidate.url}: {describe(result)}", style="dim", markup=False)

    def summarize(self, summary: RunSummary) -> None:
        if self.show_summary:
            self.console.print(render_summary(summary))

    def flush(self) -> None:
        return

    def close(self) -> None:
        return


def render_summary(summary: RunSummary, title: str = "Run summary") -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("Candidates seen", str(summary.seen))
    table.add_row("Kits confirmed", str(summary.confirmed))
    table.add_row("Kits downloaded", str(summary.downloaded))
    for outcome, label in _OUTCOME_LABELS.items():
        if outcome is Outcome.REPORTED:
            continue
        table.add_row(label, str(summary.counts[outcome]))
    if summary.cancelled:
        table.add_row("Cancelled", "yes")
    return table


__all__ = ["ConsoleReporter", "describe", "render_summary"]
