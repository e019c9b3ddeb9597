"""Configuration loading helpers for kitwatch."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from .models import KitwatchConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
CONFIG_FILENAME = "kitwatch.yaml"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    downloads_dir: Path | None = None
    outputs_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get("KITWATCH_HOME")
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.downloads_dir = (self.data_dir / "downloads").resolve()
        self.outputs_dir = (self.data_dir / "outputs").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.downloads_dir, self.outputs_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def config_path(self) -> Path:
        for suffix in CONFIG_EXTENSIONS:
            candidate = self.data_dir / f"kitwatch{suffix}"
            if candidate.exists():
                return candidate
        return self.data_dir / CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._cache: KitwatchConfig | None = None

    def load(self) -> KitwatchConfig:
        """Load the configuration, writing defaults on first use.

        Relative paths are anchored at the data directory.
        """

        if self._cache is not None:
            return self._cache
        path = self.locator.config_path()
        if path.exists():
            config = KitwatchConfig.model_validate(_read_file(path))
        else:
            config = KitwatchConfig()
            self.save(config)
        config = config.resolve_paths(self.locator.data_dir)
        config.download_to.mkdir(parents=True, exist_ok=True)
        self._cache = config
        return config

    def save(self, config: KitwatchConfig) -> Path:
        path = self.locator.config_path()
        payload = config.model_dump(mode="json", exclude={"slack": {"webhook_url"}})
        _write_file(path, payload)
        self._cache = None
        return path


__all__ = ["CONFIG_EXTENSIONS", "ConfigLocator", "ConfigRepository"]
