from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from kitwatch.config import KitwatchConfig, SlackConfig
from kitwatch.config.models import DEFAULT_EXTENSIONS, DEFAULT_MIME_TYPES


def test_defaults() -> None:
    config = KitwatchConfig()

    assert config.valid_extensions == DEFAULT_EXTENSIONS
    assert config.valid_mime_types == DEFAULT_MIME_TYPES
    assert config.threads >= 1
    assert config.timeout == 10.0
    assert config.auto_download is True
    assert config.remember_failed_downloads is True
    assert config.database == Path("kitwatch.db")


def test_database_default_comes_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KITWATCH_DATABASE", "/var/lib/kitwatch/seen.db")
    assert KitwatchConfig().database == Path("/var/lib/kitwatch/seen.db")


def test_extensions_and_mime_types_are_normalised() -> None:
    config = KitwatchConfig(
        valid_extensions="ZIP, .rar,zip,",
        valid_mime_types=["Application/Zip; charset=binary", "application/zip"],
    )
    assert config.valid_extensions == [".zip", ".rar"]
    assert config.valid_mime_types == ["application/zip"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"valid_extensions": []},
        {"valid_mime_types": [" "]},
        {"threads": 0},
        {"timeout": 0},
        {"max_download_bytes": 0},
    ],
)
def test_invalid_values_are_rejected(overrides) -> None:
    with pytest.raises(ValidationError):
        KitwatchConfig(**overrides)


def test_resolve_paths_anchors_relative_paths(tmp_path) -> None:
    config = KitwatchConfig(download_to="kits", database=tmp_path / "abs.db").resolve_paths(tmp_path)

    assert config.download_to == (tmp_path / "kits").resolve()
    assert config.database == tmp_path / "abs.db"
    assert config.outputs_dir == (tmp_path / "outputs").resolve()


def test_slack_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SLACK_WEBHOOK_URL", "https://hooks.slack.test/T/B/X")
    monkeypatch.setenv("SLACK_CHANNEL", "#phishing")

    slack = SlackConfig(enabled=True)

    assert slack.webhook_url == "https://hooks.slack.test/T/B/X"
    assert slack.channel == "#phishing"
    assert slack.active is True
    assert SlackConfig(enabled=False).active is False
    monkeypatch.delenv("SLACK_WEBHOOK_URL")
    assert SlackConfig(enabled=True).active is False
