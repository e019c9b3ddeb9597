"""Per-candidate outcomes and the run summary handed to reporters."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .acquirer import Kit
from .candidate import Candidate
from .validator import ValidationResult


class Outcome(str, Enum):
    """Terminal state of a candidate's pipeline run."""

    VALIDATION_FAILED = "validation_failed"
    DUPLICATE = "duplicate"
    ACQUIRE_FAILED = "acquire_failed"
    REPORTED = "reported"


@dataclass(frozen=True, slots=True)
class CandidateResult:
    candidate: Candidate
    outcome: Outcome
    kit: Kit | None = None
    validation: ValidationResult | None = None
    error: str | None = None

    @property
    def confirmed(self) -> bool:
        return self.outcome is Outcome.REPORTED

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "url": self.candidate.url,
            "source": self.candidate.source.value,
            "identifier": self.candidate.identifier,
            "outcome": self.outcome.value,
            "kit": self.kit.to_dict() if self.kit else None,
            "error": self.error,
        }
        if self.validation is not None:
            payload["validation"] = {
                "status_code": self.validation.status_code,
                "mime_type": self.validation.mime_type,
                "content_length": self.validation.content_length,
                "failed_check": self.validation.failed_check,
            }
        return payload


@dataclass
class RunSummary:
    """Counters accumulated while a run drains its source."""

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None
    counts: dict[Outcome, int] = field(default_factory=lambda: {outcome: 0 for outcome in Outcome})
    kits: list[Kit] = field(default_factory=list)
    cancelled: bool = False

    def add(self, result: CandidateResult) -> None:
        self.counts[result.outcome] += 1
        if result.kit is not None:
            self.kits.append(result.kit)

    @property
    def seen(self) -> int:
        return sum(self.counts.values())

    @property
    def confirmed(self) -> int:
        return self.counts[Outcome.REPORTED]

    @property
    def downloaded(self) -> int:
        return len(self.kits)

    def finish(self, cancelled: bool = False) -> "RunSummary":
        self.finished_at = datetime.now(timezone.utc)
        self.cancelled = cancelled
        return self

    def to_dict(self) -> dict[str, object]:
        return {
            "seen": self.seen,
            "confirmed": self.confirmed,
            "downloaded": self.downloaded,
            "cancelled": self.cancelled,
            **{outcome.value: count for outcome, count in self.counts.items()},
        }


__all__ = ["CandidateResult", "Outcome", "RunSummary"]
