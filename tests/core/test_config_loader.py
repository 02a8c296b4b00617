"""Tests for loading harness settings from YAML."""

# ruff: noqa: PLR2004

from __future__ import annotations

from pathlib import Path

import pytest

from neonmock.core.config import CONFIG_ENV, DEFAULT_URL_PATTERN, load_settings


def test_load_settings_parses_sections(tmp_path: Path) -> None:
    config_path = tmp_path / "dev.yaml"
    config_path.write_text(
        """
endpoint:
  url_pattern: "https://*.neon.tech/sql"
  strict: false
  failure_status: 418
paths:
  query_logs_dir: logs/query
server:
  port: 9000
        """,
        encoding="utf-8",
    )

    settings = load_settings(config_path)

    assert settings.endpoint.url_pattern == "https://*.neon.tech/sql"
    assert settings.endpoint.strict is False
    assert settings.endpoint.failure_status == 418
    assert settings.paths.query_logs_dir == "logs/query"
    assert settings.paths.scenarios_dir is None
    assert settings.server.host == "127.0.0.1"
    assert settings.server.port == 9000


def test_load_settings_defaults_without_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV, raising=False)

    settings = load_settings()

    assert settings.endpoint.url_pattern == DEFAULT_URL_PATTERN
    assert settings.endpoint.strict is True


def test_load_settings_reads_env_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "ci.yaml"
    config_path.write_text("endpoint:\n  failure_status: 500\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV, str(config_path))

    settings = load_settings()

    assert settings.endpoint.failure_status == 500


def test_load_settings_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "nope.yaml")


def test_load_settings_rejects_non_mapping(tmp_path: Path) -> None:
    config_path = tmp_path / "bad.yaml"
    config_path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="mapping"):
        load_settings(config_path)
