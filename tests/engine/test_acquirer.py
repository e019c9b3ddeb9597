from __future__ import annotations

import uuid

import httpx
import pytest

from kitwatch.engine import AcquireError, Acquirer, Candidate, FeedSource
from kitwatch.engine.acquirer import Kit, safe_extension


def _files(root):
    return sorted(p.name for p in root.iterdir()) if root.exists() else []


def test_acquire_writes_body_under_uuid_name(config_factory, archive_host, make_client) -> None:
    config = config_factory()
    archive_host.add_archive("http://evil.example/office%20365.zip", size=3000)
    acquirer = Acquirer(config, make_client(archive_host))

    kit = acquirer.acquire(Candidate("http://evil.example/office%20365.zip", FeedSource.CERTSTREAM))

    assert kit.local_path.parent == config.download_to.resolve()
    assert kit.local_path.name == f"{kit.id}.zip"
    assert kit.local_path.read_bytes() == b"P" * 3000
    assert kit.size_bytes == 3000
    assert kit.extension == ".zip"
    assert kit.filename == "office 365.zip"
    assert kit.source is FeedSource.CERTSTREAM
    assert kit.downloaded is True
    assert _files(config.download_to) == [kit.local_path.name]


def test_each_acquire_gets_a_fresh_id(config_factory, archive_host, make_client) -> None:
    archive_host.add_archive("http://evil.example/kit.tar.gz", mime="application/gzip")
    acquirer = Acquirer(config_factory(), make_client(archive_host))

    first = acquirer.acquire(Candidate("http://evil.example/kit.tar.gz"))
    second = acquirer.acquire(Candidate("http://evil.example/kit.tar.gz"))

    assert first.id != second.id
    assert first.local_path.name.endswith(".tar.gz")


def test_http_error_status_leaves_no_file(config_factory, archive_host, make_client) -> None:
    config = config_factory()
    archive_host.add_archive("http://evil.example/kit.zip", status=503)
    acquirer = Acquirer(config, make_client(archive_host))

    with pytest.raises(AcquireError) as excinfo:
        acquirer.acquire(Candidate("http://evil.example/kit.zip"))

    assert excinfo.value.reason == "status 503"
    assert excinfo.value.url == "http://evil.example/kit.zip"
    assert _files(config.download_to) == []


def test_transport_error_mid_download_leaves_no_file(config_factory, archive_host, make_client) -> None:
    config = config_factory()
    archive_host.add_archive("http://evil.example/kit.zip").get_error = httpx.ReadError
    acquirer = Acquirer(config, make_client(archive_host))

    with pytest.raises(AcquireError) as excinfo:
        acquirer.acquire(Candidate("http://evil.example/kit.zip"))

    assert "ReadError" in excinfo.value.reason
    assert _files(config.download_to) == []


def test_oversized_body_is_rejected(config_factory, archive_host, make_client) -> None:
    config = config_factory(max_download_bytes=1024)
    archive_host.add_archive("http://evil.example/kit.zip", size=4096)
    acquirer = Acquirer(config, make_client(archive_host))

    with pytest.raises(AcquireError, match="exceeds 1024 bytes"):
        acquirer.acquire(Candidate("http://evil.example/kit.zip"))
    assert _files(config.download_to) == []


def test_unsafe_extension_is_dropped_from_filename(config_factory, make_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"data")

    config = config_factory()
    kit = Acquirer(config, make_client(handler)).acquire(
        Candidate("http://evil.example/kit.z%2F..%2F..%2Fescape")
    )

    assert kit.local_path.parent == config.download_to.resolve()
    assert kit.local_path.name == str(kit.id)


def test_target_path_is_confined_to_root(config_factory, make_client) -> None:
    acquirer = Acquirer(config_factory(), make_client(lambda request: httpx.Response(200)))
    kit_id = uuid.uuid4()

    assert acquirer.target_path(kit_id, ".zip").parent == acquirer.root
    assert acquirer.target_path(kit_id, "/../../etc").name == str(kit_id)


@pytest.mark.parametrize(
    ("extension", "expected"),
    [(".zip", ".zip"), (".tar.gz", ".tar.gz"), ("", ""), ("./../x", ""), (".ZIP", ""), (".a.b.c", "")],
)
def test_safe_extension(extension: str, expected: str) -> None:
    assert safe_extension(extension) == expected


def test_kit_filename_with_size_rounds_up_to_kilobytes(tmp_path) -> None:
    kit = Kit(
        id=uuid.uuid4(),
        url="http://evil.example/kit.zip",
        local_path=tmp_path / "kit.zip",
        size_bytes=1025,
        filename="kit.zip",
    )
    assert kit.filename_with_size == "kit.zip(2KB)"
    assert kit.downloaded is False
    assert kit.to_dict()["source"] == "manual"
