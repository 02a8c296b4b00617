"""Tests for query observation sinks."""

from __future__ import annotations

import json
from pathlib import Path

from neonmock.core.observability import InMemoryQueryLogger, JSONLQueryLogger


def _load_events(path: Path) -> list[dict[str, object]]:
    with path.open("r", encoding="utf-8") as handle:
        return [json.loads(line) for line in handle]


def test_jsonl_query_logger_appends_events(tmp_path: Path) -> None:
    logger = JSONLQueryLogger(base_dir=tmp_path)

    logger.log_event("todo-add", "query_received", {"sql": "SELECT 1;", "params": ["7"]})
    logger.log_event("todo-add", "query_executed", {"sql": "SELECT 1;", "row_count": 3, "error": None})

    files = sorted(tmp_path.glob("*-todo-add.jsonl"))
    assert len(files) == 1
    events = _load_events(files[0])
    assert [event["event"] for event in events] == ["query_received", "query_executed"]
    assert events[0]["params"] == ["7"]
    assert events[1]["row_count"] == 3
    assert "error" not in events[1]
    assert "timestamp" in events[0]


def test_jsonl_query_logger_sanitizes_scenario_id(tmp_path: Path) -> None:
    logger = JSONLQueryLogger(base_dir=tmp_path)

    logger.log_event("test_add[chromium]", "query_unmatched", {"sql": "DROP TABLE todos;"})

    files = list(tmp_path.glob("*.jsonl"))
    assert len(files) == 1
    assert files[0].name.endswith("-test_add-chromium.jsonl")


def test_in_memory_logger_filters_events() -> None:
    logger = InMemoryQueryLogger()

    logger.log_event("s1", "query_received", {"sql": "SELECT 1;"})
    logger.log_event("s1", "query_unmatched", {"sql": "SELECT 1;"})

    assert [entry["sql"] for entry in logger.of("query_unmatched")] == ["SELECT 1;"]
    assert logger.events[0]["scenario_id"] == "s1"
