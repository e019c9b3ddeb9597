"""Download validated archives into the configured download root."""

from __future__ import annotations

import math
import os
import re
import uuid
from dataclasses import dataclass
from pathlib import Path

import httpx
import structlog

from ..config import KitwatchConfig
from .candidate import Candidate, FeedSource
from .errors import AcquireError

_SAFE_EXTENSION = re.compile(r"^\.[a-z0-9]{1,10}(\.[a-z0-9]{1,10})?$")
_CHUNK_SIZE = 64 * 1024


def safe_extension(extension: str) -> str:
    """Return ``extension`` when it is a plain (optionally compound) suffix, else ''."""

    return extension if _SAFE_EXTENSION.match(extension or "") else ""


@dataclass(frozen=True, slots=True)
class Kit:
    """A downloaded archive. ``id`` names the file, never the URL."""

    id: uuid.UUID
    url: str
    local_path: Path
    size_bytes: int | None
    source: FeedSource = FeedSource.MANUAL
    extension: str = ""
    filename: str = ""

    @property
    def downloaded(self) -> bool:
        return self.local_path.exists()

    @property
    def filename_with_size(self) -> str:
        if self.size_bytes is None:
            return self.filename
        kb = math.ceil(self.size_bytes / 1024)
        return f"{self.filename}({kb}KB)"

    def to_dict(self) -> dict[str, object]:
        return {
            "id": str(self.id),
            "url": self.url,
            "local_path": str(self.local_path),
            "size_bytes": self.size_bytes,
            "source": self.source.value,
            "extension": self.extension,
            "filename": self.filename,
        }


class Acquirer:
    """Stream a candidate's body to ``<root>/<uuid><ext>`` via a temp file."""

    def __init__(
        self,
        config: KitwatchConfig,
        client: httpx.Client,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.root = Path(config.download_to).resolve()
        self._client = client
        self.logger = logger or structlog.get_logger("kitwatch.acquirer")

    def target_path(self, kit_id: uuid.UUID, extension: str) -> Path:
        path = (self.root / f"{kit_id}{safe_extension(extension)}").resolve()
        if path.parent != self.root:
            raise AcquireError(str(kit_id), f"refusing to write outside {self.root}")
        return path

    def acquire(self, candidate: Candidate) -> Kit:
        kit_id = uuid.uuid4()
        extension = safe_extension(candidate.extension)
        target = self.target_path(kit_id, extension)
        partial = target.with_name(f".{target.name}.part")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            size = self._download(candidate.url, partial)
            os.replace(partial, target)
        except httpx.HTTPStatusError as exc:
            self._discard(partial)
            raise AcquireError(candidate.url, f"status {exc.response.status_code}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._discard(partial)
            raise AcquireError(candidate.url, f"{type(exc).__name__}: {exc}") from exc
        except OSError as exc:
            self._discard(partial)
            raise AcquireError(candidate.url, f"storage error: {exc}") from exc
        except AcquireError:
            self._discard(partial)
            raise
        kit = Kit(
            id=kit_id,
            url=candidate.url,
            local_path=target,
            size_bytes=size,
            source=candidate.source,
            extension=extension,
            filename=candidate.filename,
        )
        self.logger.info(
            "kit_downloaded",
            url=candidate.url,
            kit_id=str(kit_id),
            path=str(target),
            size=size,
        )
        return kit

    def _download(self, url: str, destination: Path) -> int:
        limit = self.config.max_download_bytes
        written = 0
        with self._client.stream("GET", url, timeout=self.config.timeout) as response:
            response.raise_for_status()
            with destination.open("wb") as handle:
                for chunk in response.iter_bytes(_CHUNK_SIZE):
                    written += len(chunk)
                    if limit is not None and written > limit:
                        raise AcquireError(url, f"body exceeds {limit} bytes")
                    handle.write(chunk)
        return written

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass


__all__ = ["Acquirer", "Kit", "safe_extension"]
