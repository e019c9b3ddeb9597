"""Pydantic models describing a kitwatch run configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_EXTENSIONS = [".zip", ".rar", ".7z", ".tar", ".gz", ".tar.gz"]
DEFAULT_MIME_TYPES = [
    "application/zip",
    "application/vnd.rar",
    "application/x-7z-compressed",
    "application/x-tar",
    "application/gzip",
]


def _default_threads() -> int:
    return os.cpu_count() or 1


class SlackConfig(BaseModel):
    """Incoming-webhook settings for the Slack reporter."""

    enabled: bool = False
    webhook_url: str | None = Field(default_factory=lambda: os.environ.get("SLACK_WEBHOOK_URL"))
    channel: str = Field(default_factory=lambda: os.environ.get("SLACK_CHANNEL", "#general"))

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.webhook_url)


class KitwatchConfig(BaseModel):
    """Settings shared by the validator, acquirer and orchestrator.

    Built once at startup and passed to each component explicitly.
    """

    download_to: Path = Field(default=Path("downloads"))
    database: Path = Field(
        default_factory=lambda: Path(os.environ.get("KITWATCH_DATABASE", "kitwatch.db"))
    )
    outputs_dir: Path = Field(default=Path("outputs"))
    threads: int = Field(default_factory=_default_threads, ge=1)
    timeout: float = Field(default=10.0, gt=0)
    valid_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    valid_mime_types: list[str] = Field(default_factory=lambda: list(DEFAULT_MIME_TYPES))
    auto_download: bool = True
    remember_failed_downloads: bool = True
    directory_traveling: bool = False
    max_download_bytes: int | None = Field(default=None, gt=0)
    user_agent: str | None = None
    slack: SlackConfig = Field(default_factory=SlackConfig)

    @field_validator("download_to", "database", "outputs_dir", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value).expanduser()

    @field_validator("valid_extensions", mode="before")
    @classmethod
    def _normalise_extensions(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            value = value.split(",")
        extensions: list[str] = []
        for item in value or []:
            ext = str(item).strip().lower()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = f".{ext}"
            if ext not in extensions:
                extensions.append(ext)
        return extensions

    @field_validator("valid_mime_types", mode="before")
    @classmethod
    def _normalise_mime_types(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            value = value.split(",")
        mime_types: list[str] = []
        for item in value or []:
            mime = str(item).split(";", 1)[0].strip().lower()
            if mime and mime not in mime_types:
                mime_types.append(mime)
        return mime_types

    @model_validator(mode="after")
    def _validate_allow_lists(self) -> "KitwatchConfig":
        if not self.valid_extensions:
            raise ValueError("valid_extensions cannot be empty")
        if not self.valid_mime_types:
            raise ValueError("valid_mime_types cannot be empty")
        return self

    def resolve_paths(self, base_dir: Path) -> "KitwatchConfig":
        """Return a copy whose relative paths are anchored at ``base_dir``."""

        updates: dict[str, Path] = {}
        for name in ("download_to", "database", "outputs_dir"):
            path: Path = getattr(self, name)
            if not path.is_absolute():
                updates[name] = (base_dir / path).resolve()
        return self.model_copy(update=updates) if updates else self


__all__ = [
    "DEFAULT_EXTENSIONS",
    "DEFAULT_MIME_TYPES",
    "KitwatchConfig",
    "SlackConfig",
]
