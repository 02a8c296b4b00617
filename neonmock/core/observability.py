"""Query observation sinks recording every intercepted statement."""

from __future__ import annotations

import json
import re
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol


class QueryObservationSink(Protocol):
    """Records lifecycle events emitted by the fetch interceptor."""

    def log_event(self, scenario_id: str, event: str, payload: dict[str, Any]) -> None:  # pragma: no cover - interface
        ...


def utc_now_iso() -> str:
    """Return the current UTC time in ISO-8601 with millisecond precision."""

    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sanitize_scenario_id(scenario_id: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_-]+", "-", scenario_id.strip())
    return cleaned.strip("-") or "scenario"


def _build_event(event: str, payload: dict[str, Any]) -> dict[str, Any]:
    enriched = {key: value for key, value in payload.items() if value is not None}
    enriched.setdefault("event", event)
    enriched.setdefault("timestamp", utc_now_iso())
    return enriched


@dataclass(slots=True)
class JSONLQueryLogger(QueryObservationSink):
    """Appends interceptor events to one JSONL file per scenario.

    Files are named ``<UTC start slug>-<scenario id>.jsonl`` so runs sort
    chronologically; the path is fixed on a scenario's first event.
    """

    base_dir: Path
    _paths: dict[str, Path] = field(init=False, default_factory=dict)
    _lock: threading.Lock = field(init=False, default_factory=threading.Lock)

    def path_for(self, scenario_id: str) -> Path:
        target = self._paths.get(scenario_id)
        if target is None:
            slug = datetime.now(UTC).strftime("%Y%m%dT%H%M%S%f")[:-3]
            base = Path(self.base_dir).expanduser()
            base.mkdir(parents=True, exist_ok=True)
            target = base / f"{slug}-{sanitize_scenario_id(scenario_id)}.jsonl"
            self._paths[scenario_id] = target
        return target

    def log_event(self, scenario_id: str, event: str, payload: dict[str, Any]) -> None:  # type: ignore[override]
        prepared = _build_event(event, payload)
        with self._lock:
            with self.path_for(scenario_id).open("a", encoding="utf-8") as handle:
                json.dump(prepared, handle, ensure_ascii=False, default=str)
                handle.write("\n")


@dataclass(slots=True)
class InMemoryQueryLogger(QueryObservationSink):
    """Keeps events in a list so tests can assert on interceptor traffic."""

    events: list[dict[str, Any]] = field(default_factory=list)

    def log_event(self, scenario_id: str, event: str, payload: dict[str, Any]) -> None:  # type: ignore[override]
        prepared = _build_event(event, payload)
        prepared.setdefault("scenario_id", scenario_id)
        self.events.append(prepared)

    def of(self, event: str) -> list[dict[str, Any]]:
        return [entry for entry in self.events if entry["event"] == event]
