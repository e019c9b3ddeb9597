"""Reporter Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ..results import CandidateResult, RunSummary


class BaseReporter(ABC):
    """Uniform contract for consumers of per-candidate outcomes."""

    @abstractmethod
    def report(self, result: CandidateResult) -> None:
        """Handle one finished candidate."""

    def report_many(self, results: Iterable[CandidateResult]) -> None:
        for result in results:
            self.report(result)

    def summarize(self, summary: RunSummary) -> None:
        """Receive the run summary once the source is drained."""

    @abstractmethod
    def flush(self) -> None:
        """Flush buffered data to destination."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseReporter"]
