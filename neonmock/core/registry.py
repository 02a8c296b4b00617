"""Exact-text dispatch table mapping SQL statements to handlers."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Literal, NamedTuple, Protocol, Sequence

from neonmock.core.encoder import ResultEncoder
from neonmock.core.errors import HandlerError, MockHarnessError, UnmatchedQueryError
from neonmock.core.table import VirtualTable


LOGGER = logging.getLogger(__name__)

Command = Literal["SELECT", "INSERT", "UPDATE", "DELETE"]


class QueryResult(NamedTuple):
    command: Command
    rows: Sequence[dict[str, Any]]


class QueryHandler(Protocol):
    """Runs one registered statement against its table."""

    def __call__(
        self, params: list[Any], table: VirtualTable
    ) -> QueryResult | tuple[str, Sequence[dict[str, Any]]]:  # pragma: no cover - interface
        ...


@dataclass(slots=True, frozen=True)
class RegisteredQuery:
    sql: str
    table: VirtualTable
    handler: QueryHandler


class QueryRegistry:
    """Per-scenario mapping from literal SQL text to a handler.

    Lookup is plain ``str`` equality: no whitespace folding, no case folding,
    no parameter substitution. Handler execution and result encoding run under
    one re-entrant lock so overlapping requests see a consistent table.
    """

    def __init__(self) -> None:
        self._entries: dict[str, RegisteredQuery] = {}
        self._lock = threading.RLock()
        self.unmatched: list[str] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, sql: object) -> bool:
        return sql in self._entries

    @property
    def statements(self) -> list[str]:
        return list(self._entries)

    def register(self, sql: str, table: VirtualTable, handler: QueryHandler) -> None:
        if not isinstance(sql, str) or not sql:
            raise ValueError("SQL text must be a non-empty string")
        if sql in self._entries:
            raise ValueError(f"Query already registered: {sql!r}")
        self._entries[sql] = RegisteredQuery(sql=sql, table=table, handler=handler)
        LOGGER.debug("Registered query for table %s: %s", table.name, sql)

    def query(self, sql: str, table: VirtualTable) -> Callable[[QueryHandler], QueryHandler]:
        """Decorator form of :meth:`register`."""

        def decorator(handler: QueryHandler) -> QueryHandler:
            self.register(sql, table, handler)
            return handler

        return decorator

    def resolve(self, sql: str) -> RegisteredQuery | None:
        return self._entries.get(sql)

    def dispatch(self, sql: str, params: Sequence[Any] = ()) -> tuple[QueryResult, VirtualTable]:
        """Run the handler registered for *sql* and return its result."""

        entry = self.resolve(sql)
        if entry is None:
            self.unmatched.append(sql)
            LOGGER.warning("Unmatched query: %s", sql)
            raise UnmatchedQueryError(sql)
        with self._lock:
            try:
                result = _as_result(entry.handler(list(params), entry.table))
            except MockHarnessError:
                raise
            except Exception as exc:
                LOGGER.warning("Handler for %s failed: %s", sql, exc)
                raise HandlerError(sql, exc) from exc
        return result, entry.table

    def execute(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any]:
        """Dispatch *sql* and encode the handler output for the wire."""

        with self._lock:
            result, table = self.dispatch(sql, params)
            encoder = ResultEncoder(table.schema, table_name=table.name)
            try:
                return encoder.encode(result.command, result.rows)
            except MockHarnessError:
                raise
            except (TypeError, ValueError) as exc:
                raise HandlerError(sql, exc) from exc


def _as_result(value: Any) -> QueryResult:
    if isinstance(value, QueryResult):
        return value
    if isinstance(value, tuple) and len(value) == 2:
        command, rows = value
        return QueryResult(command=command, rows=rows)
    raise TypeError(f"Query handlers must return (command, rows), got {type(value).__name__}")


__all__ = ["Command", "QueryHandler", "QueryRegistry", "QueryResult", "RegisteredQuery"]
