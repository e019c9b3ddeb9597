"""Candidate URLs and the helpers deriving identity and extension from them."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import unquote, urlsplit, urlunsplit

COMPOUND_SUFFIX = ".tar.gz"
_DEFAULT_PORTS = {"http": 80, "https": 443}


class FeedSource(str, Enum):
    """Feed a candidate URL was surfaced by."""

    CERTSTREAM = "certstream"
    DIRECTORY_CRAWL = "directory_crawl"
    MANUAL = "manual"
    URL_LIST = "url_list"


def _url_path(url: str) -> str:
    return unquote(urlsplit(url.strip()).path).rstrip("/")


def extract_extension(url: str) -> str:
    """Return the archive extension of ``url``'s final path segment.

    ``.tar.gz`` is kept whole; anything else is split at the last dot.
    Query strings, fragments and trailing slashes are ignored.
    """

    basename = posixpath.basename(_url_path(url)).lower()
    if basename.endswith(COMPOUND_SUFFIX) and basename != COMPOUND_SUFFIX:
        return COMPOUND_SUFFIX
    return posixpath.splitext(basename)[1]


def normalize_url(url: str) -> str:
    """Canonical form used as the dedup identifier.

    Lower-cases scheme and host, drops credentials, fragment and default
    ports, decodes percent-escapes and strips trailing slashes.
    """

    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    try:
        port = parts.port
    except ValueError:
        port = None
    netloc = host
    if port is not None and _DEFAULT_PORTS.get(scheme) != port:
        netloc = f"{host}:{port}"
    path = unquote(parts.path).rstrip("/")
    query = unquote(parts.query)
    return urlunsplit((scheme, netloc, path, query, ""))


@dataclass(frozen=True, slots=True)
class Candidate:
    """A URL reported by a feed, not yet validated."""

    url: str
    source: FeedSource = FeedSource.MANUAL
    identifier: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        url = (self.url or "").strip()
        if not url:
            raise ValueError("Candidate URL cannot be empty")
        object.__setattr__(self, "url", url)
        object.__setattr__(self, "identifier", normalize_url(url))

    @property
    def extension(self) -> str:
        return extract_extension(self.url)

    @property
    def hostname(self) -> str | None:
        return urlsplit(self.url).hostname

    @property
    def filename(self) -> str:
        """Percent-decoded basename, for display only."""

        return posixpath.basename(_url_path(self.url))


__all__ = [
    "COMPOUND_SUFFIX",
    "Candidate",
    "FeedSource",
    "extract_extension",
    "normalize_url",
]
