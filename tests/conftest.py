"""Shared fixtures: configuration builder and an in-memory archive host."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Iterable

import httpx
import pytest

from kitwatch.config import KitwatchConfig
from kitwatch.infra import SQLiteManager
from kitwatch.orchestrator import Orchestrator, build_orchestrator


@pytest.fixture(autouse=True)
def kitwatch_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("KITWATCH_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("SLACK_WEBHOOK_URL", raising=False)
    monkeypatch.delenv("KITWATCH_DATABASE", raising=False)
    return tmp_path / "home"


@pytest.fixture
def config_factory(tmp_path: Path) -> Callable[..., KitwatchConfig]:
    def _builder(**overrides: Any) -> KitwatchConfig:
        base: dict[str, Any] = {
            "download_to": tmp_path / "downloads",
            "database": tmp_path / "history.db",
            "outputs_dir": tmp_path / "outputs",
            "threads": 4,
            "timeout": 1.0,
        }
        base.update(overrides)
        return KitwatchConfig(**base)

    return _builder


@dataclass
class Route:
    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    error: type[Exception] | None = None
    get_error: type[Exception] | None = None


class ArchiveHost:
    """MockTransport handler serving fixed routes and recording requests."""

    def __init__(self) -> None:
        self.routes: dict[str, Route] = {}
        self.requests: list[tuple[str, str]] = []
        self._lock = Lock()

    def add(self, url: str, **kwargs: Any) -> Route:
        route = Route(**kwargs)
        self.routes[url] = route
        return route

    def add_archive(
        self, url: str, size: int = 4096, mime: str = "application/zip", status: int = 200
    ) -> Route:
        return self.add(
            url,
            status=status,
            headers={"Content-Type": mime, "Content-Length": str(size)},
            body=b"P" * size,
        )

    def methods(self, method: str) -> list[str]:
        with self._lock:
            return [url for m, url in self.requests if m == method]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        with self._lock:
            self.requests.append((request.method, url))
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, headers={"Content-Type": "text/html"}, content=b"missing")
        if route.error is not None:
            raise route.error("simulated failure", request=request)
        if request.method == "HEAD":
            return httpx.Response(route.status, headers=route.headers)
        if route.get_error is not None:
            raise route.get_error("simulated failure", request=request)
        headers = {k: v for k, v in route.headers.items() if k.lower() != "content-length"}
        return httpx.Response(route.status, headers=headers, content=route.body)


@pytest.fixture
def archive_host() -> ArchiveHost:
    return ArchiveHost()


@pytest.fixture
def make_client() -> Iterable[Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]]:
    clients: list[httpx.Client] = []

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler), follow_redirects=True)
        clients.append(client)
        return client

    yield _factory
    for client in clients:
        client.close()


@pytest.fixture
def pipeline_factory(
    config_factory, archive_host: ArchiveHost, make_client
) -> Iterable[Callable[..., Orchestrator]]:
    storage = SQLiteManager()

    def _builder(config: KitwatchConfig | None = None, reporters=(), **overrides: Any) -> Orchestrator:
        cfg = config or config_factory(**overrides)
        return build_orchestrator(
            cfg, storage=storage, client=make_client(archive_host), reporters=reporters
        )

    yield _builder
    storage.close_all()
