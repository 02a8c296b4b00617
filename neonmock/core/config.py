"""Utilities for loading harness settings from YAML configuration files."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_ENV = "NEONMOCK_CONFIG"
DEFAULT_URL_PATTERN = "*://*/sql"


@dataclass(slots=True)
class EndpointSettings:
    url_pattern: str = DEFAULT_URL_PATTERN
    strict: bool = True
    failure_status: int = 400


@dataclass(slots=True)
class PathsSettings:
    query_logs_dir: str | None = None
    scenarios_dir: str | None = None


@dataclass(slots=True)
class ServerSettings:
    host: str = "127.0.0.1"
    port: int = 8787


@dataclass(slots=True)
class Settings:
    endpoint: EndpointSettings = field(default_factory=EndpointSettings)
    paths: PathsSettings = field(default_factory=PathsSettings)
    server: ServerSettings = field(default_factory=ServerSettings)


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"Config file '{path}' must contain a mapping")
    return payload


def load_settings(path: str | Path | None = None) -> Settings:
    """Read configuration from *path* and return structured settings.

    With no *path*, the file named by ``NEONMOCK_CONFIG`` is used; if that is
    unset too, defaults are returned.
    """

    if path is None:
        env_path = os.getenv(CONFIG_ENV)
        if not env_path:
            return Settings()
        path = env_path

    config_path = Path(path).expanduser()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found at '{config_path}'")
    raw = _load_yaml(config_path)

    endpoint_raw = raw.get("endpoint") or {}
    endpoint = EndpointSettings(
        url_pattern=str(endpoint_raw.get("url_pattern", DEFAULT_URL_PATTERN)),
        strict=bool(endpoint_raw.get("strict", True)),
        failure_status=int(endpoint_raw.get("failure_status", 400)),
    )

    paths_raw = raw.get("paths") or {}
    query_logs_dir = paths_raw.get("query_logs_dir")
    scenarios_dir = paths_raw.get("scenarios_dir")
    paths = PathsSettings(
        query_logs_dir=str(query_logs_dir) if query_logs_dir else None,
        scenarios_dir=str(scenarios_dir) if scenarios_dir else None,
    )

    server_raw = raw.get("server") or {}
    server = ServerSettings(
        host=str(server_raw.get("host", "127.0.0.1")),
        port=int(server_raw.get("port", 8787)),
    )

    return Settings(endpoint=endpoint, paths=paths, server=server)


def resolve_dir(value: str | None, default: str) -> Path:
    path = Path(value or default).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return path
