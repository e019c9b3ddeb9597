"""Feeds built from explicit URL lists."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

import structlog

from ..engine.candidate import Candidate, FeedSource

logger = structlog.get_logger("kitwatch.feeds")


def _unique_candidates(urls: Iterable[str], source: FeedSource) -> Iterator[Candidate]:
    seen: set[str] = set()
    for raw in urls:
        url = raw.strip()
        if not url:
            continue
        try:
            candidate = Candidate(url, source)
        except ValueError as exc:
            logger.warning("candidate_rejected", url=url, error=str(exc))
            continue
        if candidate.identifier in seen:
            continue
        seen.add(candidate.identifier)
        yield candidate


class ManualFeed:
    """In-memory list of URLs, typically from the command line."""

    def __init__(self, urls: Iterable[str], source: FeedSource = FeedSource.MANUAL, name: str = "manual") -> None:
        self.urls = list(urls)
        self.source = source
        self.name = name

    def __iter__(self) -> Iterator[Candidate]:
        return _unique_candidates(self.urls, self.source)


class FileFeed:
    """One URL per line; blank lines and ``#`` comments are skipped.

    The file is re-read on every iteration so a polled feed picks up new lines.
    """

    def __init__(self, path: Path, source: FeedSource = FeedSource.URL_LIST) -> None:
        self.path = Path(path)
        self.source = source
        self.name = self.path.stem

    def _lines(self) -> Iterator[str]:
        with self.path.open("r", encoding="utf-8", errors="ignore") as stream:
            for line in stream:
                text = line.strip()
                if text and not text.startswith("#"):
                    yield text

    def __iter__(self) -> Iterator[Candidate]:
        if not self.path.exists():
            raise FileNotFoundError(f"URL list not found: {self.path}")
        return _unique_candidates(self._lines(), self.source)


class ChainedFeed:
    """Concatenate several feeds, keeping identifiers unique across them."""

    def __init__(self, feeds: Iterable) -> None:
        self.feeds = list(feeds)
        self.name = "+".join(feed.name for feed in self.feeds) or "empty"

    def __iter__(self) -> Iterator[Candidate]:
        seen: set[str] = set()
        for feed in self.feeds:
            for candidate in feed:
                if candidate.identifier in seen:
                    continue
                seen.add(candidate.identifier)
                yield candidate


__all__ = ["ChainedFeed", "FileFeed", "ManualFeed"]
