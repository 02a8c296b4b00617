"""Per-test scenario context and YAML-defined scenarios.

A :class:`MockScenario` owns the tables and the query registry for exactly
one test. Nothing here is module-global, so scenarios running in parallel
never share state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Protocol

import yaml

from neonmock.core.clock import Clock, SystemClock
from neonmock.core.handlers import ACTIONS
from neonmock.core.registry import QueryHandler, QueryRegistry
from neonmock.core.schema import ColumnDescriptor, TableSchema
from neonmock.core.table import VirtualTable, values_equal


LOGGER = logging.getLogger(__name__)


@dataclass
class MockScenario:
    """Tables, registry and clock for a single test scenario."""

    scenario_id: str = "scenario"
    clock: Clock = field(default_factory=SystemClock)
    registry: QueryRegistry = field(default_factory=QueryRegistry)
    tables: dict[str, VirtualTable] = field(default_factory=dict)

    def add_table(
        self,
        name: str,
        columns: TableSchema | Iterable[Mapping[str, Any] | ColumnDescriptor],
        rows: Iterable[Mapping[str, Any]] = (),
    ) -> VirtualTable:
        if name in self.tables:
            raise ValueError(f"Table '{name}' already defined in scenario {self.scenario_id}")
        schema = columns if isinstance(columns, TableSchema) else TableSchema.from_fields(columns)
        table = VirtualTable(name, schema, rows, clock=self.clock)
        self.tables[name] = table
        return table

    def table(self, name: str) -> VirtualTable:
        try:
            return self.tables[name]
        except KeyError:
            raise KeyError(f"Unknown table '{name}' in scenario {self.scenario_id}") from None

    def register(self, sql: str, table: str | VirtualTable, handler: QueryHandler) -> None:
        target = self.table(table) if isinstance(table, str) else table
        self.registry.register(sql, target, handler)

    def query(self, sql: str, table: str | VirtualTable) -> Callable[[QueryHandler], QueryHandler]:
        target = self.table(table) if isinstance(table, str) else table
        return self.registry.query(sql, target)


class ScenarioLoader(Protocol):
    """Builds fresh scenarios by name."""

    def load(self, name: str, *, clock: Clock | None = None) -> MockScenario:  # pragma: no cover - interface
        """Return a new scenario for *name*."""


@dataclass(slots=True)
class YamlScenarioLoader(ScenarioLoader):
    """Loads scenarios from YAML files located under a base directory."""

    base_dir: Path

    def available(self) -> list[str]:
        return sorted(path.stem for path in Path(self.base_dir).glob("*.yaml"))

    def load(self, name: str, *, clock: Clock | None = None) -> MockScenario:
        target = Path(self.base_dir) / f"{name}.yaml"
        if not target.exists():
            raise FileNotFoundError(f"Scenario file not found at '{target}'")
        with target.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
        if not isinstance(payload, dict):
            raise ValueError("Scenario file must contain a top-level mapping")
        scenario = build_scenario(payload, scenario_id=name, clock=clock)
        LOGGER.info(
            "Loaded scenario %s (tables=%s, queries=%s)",
            name,
            len(scenario.tables),
            len(scenario.registry),
        )
        return scenario


def build_scenario(
    payload: Mapping[str, Any],
    *,
    scenario_id: str = "scenario",
    clock: Clock | None = None,
) -> MockScenario:
    """Create a :class:`MockScenario` from a parsed scenario definition."""

    scenario = MockScenario(scenario_id=scenario_id, clock=clock or SystemClock())

    tables_raw = payload.get("tables") or {}
    if not isinstance(tables_raw, dict):
        raise ValueError("'tables' must be a mapping of table name to definition")
    for name, definition in tables_raw.items():
        columns = [
            {"name": column["name"], "dataTypeID": column.get("type", column.get("dataTypeID"))}
            for column in definition.get("columns", [])
        ]
        scenario.add_table(str(name), columns, definition.get("rows") or [])

    for entry in payload.get("queries") or []:
        if not isinstance(entry, dict):
            raise ValueError("Query entries must be mappings")
        options = dict(entry)
        sql = options.pop("sql", None)
        table = options.pop("table", None)
        action = str(options.pop("action", "")).lower()
        if not sql or not table:
            raise ValueError("Query entries need 'sql' and 'table'")
        factory = ACTIONS.get(action)
        if factory is None:
            raise ValueError(f"Unknown action '{action}' for query {sql!r}")
        if action == "select" and isinstance(options.get("where"), dict):
            options["where"] = _equality_filter(options["where"])
        scenario.register(sql, str(table), factory(**options))

    return scenario


def _equality_filter(conditions: Mapping[str, Any]) -> Callable[[dict[str, Any]], bool]:
    def predicate(row: dict[str, Any]) -> bool:
        return all(values_equal(row.get(column), value) for column, value in conditions.items())

    return predicate


__all__ = ["MockScenario", "ScenarioLoader", "YamlScenarioLoader", "build_scenario"]
