"""Expand candidate URLs into archive guesses for each parent directory.

Kit operators often leave the archive they uploaded next to the deployed
kit, e.g. ``/login/office365/index.php`` sits beside ``/login/office365.zip``.
"""

from __future__ import annotations

from typing import Iterable, Iterator
from urllib.parse import urlsplit, urlunsplit

from ..engine.candidate import Candidate, FeedSource


def parent_directories(url: str) -> list[str]:
    """Return parent directory URLs of ``url``, deepest first, excluding the host root."""

    parts = urlsplit(url)
    segments = [segment for segment in parts.path.split("/") if segment]
    if parts.path and not parts.path.endswith("/"):
        segments = segments[:-1]
    directories: list[str] = []
    for depth in range(len(segments), 0, -1):
        path = "/" + "/".join(segments[:depth])
        directories.append(urlunsplit((parts.scheme, parts.netloc, path, "", "")))
    return directories


def archive_guesses(url: str, extensions: Iterable[str]) -> list[str]:
    return [f"{directory}{ext}" for directory in parent_directories(url) for ext in extensions]


class DirectoryTraversalFeed:
    """Wrap a feed; yield each candidate and then its per-directory archive guesses."""

    def __init__(self, inner, extensions: Iterable[str]) -> None:
        self.inner = inner
        self.extensions = list(extensions)
        self.name = f"{inner.name}+dirs"

    def __iter__(self) -> Iterator[Candidate]:
        seen: set[str] = set()
        for candidate in self.inner:
            if candidate.identifier not in seen:
                seen.add(candidate.identifier)
                yield candidate
            for guess in archive_guesses(candidate.url, self.extensions):
                derived = Candidate(guess, FeedSource.DIRECTORY_CRAWL)
                if derived.identifier in seen:
                    continue
                seen.add(derived.identifier)
                yield derived


__all__ = ["DirectoryTraversalFeed", "archive_guesses", "parent_directories"]
