from __future__ import annotations

import pytest

from kitwatch.engine import FeedSource
from kitwatch.feeds import (
    CandidateSource,
    ChainedFeed,
    DirectoryTraversalFeed,
    FileFeed,
    ManualFeed,
    archive_guesses,
    parent_directories,
)


def test_manual_feed_skips_blanks_and_duplicates() -> None:
    feed = ManualFeed(["http://a.example/k.zip", " ", "http://A.example/k.zip/", "http://b.example/k.zip"])

    urls = [candidate.url for candidate in feed]

    assert urls == ["http://a.example/k.zip", "http://b.example/k.zip"]
    assert isinstance(feed, CandidateSource)


def test_file_feed_reads_urls_and_rereads_on_iteration(tmp_path) -> None:
    path = tmp_path / "certstream-dump.txt"
    path.write_text("# comment\nhttp://a.example/k.zip\n\nhttp://b.example/k.rar\n", encoding="utf-8")
    feed = FileFeed(path)

    first = list(feed)
    with path.open("a", encoding="utf-8") as stream:
        stream.write("http://c.example/k.7z\n")
    second = list(feed)

    assert feed.name == "certstream-dump"
    assert [c.url for c in first] == ["http://a.example/k.zip", "http://b.example/k.rar"]
    assert len(second) == 3
    assert all(c.source is FeedSource.URL_LIST for c in second)


def test_file_feed_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        list(FileFeed(tmp_path / "missing.txt"))


def test_chained_feed_dedupes_across_feeds(tmp_path) -> None:
    path = tmp_path / "list.txt"
    path.write_text("http://a.example/k.zip\nhttp://c.example/k.zip\n", encoding="utf-8")
    feed = ChainedFeed([ManualFeed(["http://a.example/k.zip", "http://b.example/k.zip"]), FileFeed(path)])

    assert feed.name == "manual+list"
    assert [c.url for c in feed] == [
        "http://a.example/k.zip",
        "http://b.example/k.zip",
        "http://c.example/k.zip",
    ]


def test_parent_directories_deepest_first() -> None:
    assert parent_directories("http://evil.example/a/b/index.php?x=1") == [
        "http://evil.example/a/b",
        "http://evil.example/a",
    ]
    assert parent_directories("http://evil.example/a/b/") == [
        "http://evil.example/a/b",
        "http://evil.example/a",
    ]
    assert parent_directories("http://evil.example/index.php") == []


def test_archive_guesses() -> None:
    assert archive_guesses("http://evil.example/login/office/index.php", [".zip", ".rar"]) == [
        "http://evil.example/login/office.zip",
        "http://evil.example/login/office.rar",
        "http://evil.example/login.zip",
        "http://evil.example/login.rar",
    ]


def test_directory_traversal_feed_tags_and_dedupes_guesses() -> None:
    inner = ManualFeed(
        ["http://evil.example/login/office/index.php", "http://evil.example/login/other/index.php"]
    )
    feed = DirectoryTraversalFeed(inner, [".zip"])

    candidates = list(feed)
    urls = [c.url for c in candidates]

    assert feed.name == "manual+dirs"
    assert urls == [
        "http://evil.example/login/office/index.php",
        "http://evil.example/login/office.zip",
        "http://evil.example/login.zip",
        "http://evil.example/login/other/index.php",
        "http://evil.example/login/other.zip",
    ]
    assert candidates[1].source is FeedSource.DIRECTORY_CRAWL
    assert candidates[0].source is FeedSource.MANUAL
