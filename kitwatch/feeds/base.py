"""Candidate source protocol."""

from __future__ import annotations

from typing import Iterator, Protocol, runtime_checkable

from ..engine.candidate import Candidate


@runtime_checkable
class CandidateSource(Protocol):
    """Lazy, possibly unbounded, sequence of candidates with a display name."""

    name: str

    def __iter__(self) -> Iterator[Candidate]:
        """Yield each candidate at most once per iteration."""


__all__ = ["CandidateSource"]
