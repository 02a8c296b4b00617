"""Factories for the canonical select/insert/update/delete handlers.

Each factory returns a callable matching :class:`QueryHandler`. Bound
parameters are positional and coerced by the target column's declared type,
so ``"7"`` lands in an ``int4`` column as ``7``.
"""

from __future__ import annotations

from typing import Any, Callable, Literal, Mapping, Sequence

from neonmock.core.registry import QueryHandler, QueryResult
from neonmock.core.schema import coerce_param
from neonmock.core.table import VirtualTable

RowPredicate = Callable[[dict[str, Any]], bool]


def select_all(where: RowPredicate | None = None) -> QueryHandler:
    """Return every row in insertion order, optionally pre-filtered."""

    def handler(params: list[Any], table: VirtualTable) -> QueryResult:
        rows = table.rows
        if where is not None:
            rows = [row for row in rows if where(row)]
        return QueryResult("SELECT", rows)

    return handler


def insert_from_params(
    columns: Sequence[str],
    *,
    defaults: Mapping[str, Any] | None = None,
    id_column: str | None = "id",
    timestamp_columns: Sequence[str] = ("created_at", "updated_at"),
    returning: Literal["row", "all"] = "row",
) -> QueryHandler:
    """Append a record built from positional params mapped onto *columns*.

    The generated id is ``len(table) + 1``; timestamp columns present in the
    schema are filled from the table's clock.
    """

    fixed = dict(defaults or {})

    def handler(params: list[Any], table: VirtualTable) -> QueryResult:
        if len(params) != len(columns):
            raise ValueError(
                f"Insert into '{table.name}' expects {len(columns)} params, got {len(params)}"
            )
        record: dict[str, Any] = dict(fixed)
        if id_column is not None and id_column in table.schema:
            record[id_column] = table.next_id()
        stamp = table.now()
        for column in timestamp_columns:
            if column in table.schema and column not in record:
                record[column] = stamp
        for column, value in zip(columns, params):
            record[column] = _coerce(table, column, value)
        stored = table.append(record)
        return QueryResult("INSERT", table.rows if returning == "all" else [stored])

    return handler


def update_by_id(
    columns: Sequence[str],
    *,
    id_column: str = "id",
    touch: str | None = None,
) -> QueryHandler:
    """Update *columns* on the row whose id is the last param.

    Params are ``[*new_values, id]``. Only the targeted columns change unless
    *touch* names a timestamp column to refresh.
    """

    def handler(params: list[Any], table: VirtualTable) -> QueryResult:
        if len(params) != len(columns) + 1:
            raise ValueError(
                f"Update on '{table.name}' expects {len(columns) + 1} params, got {len(params)}"
            )
        *values, identifier = params
        changes = {column: _coerce(table, column, value) for column, value in zip(columns, values)}
        if touch is not None:
            changes[touch] = table.now()
        record = table.update(id_column, identifier, changes)
        return QueryResult("UPDATE", [record])

    return handler


def delete_by_id(
    *,
    id_column: str = "id",
    returning: Literal["remaining", "removed"] = "remaining",
) -> QueryHandler:
    """Delete the row whose id is the first param."""

    def handler(params: list[Any], table: VirtualTable) -> QueryResult:
        if not params:
            raise ValueError(f"Delete on '{table.name}' expects an id param")
        removed = table.delete(id_column, params[0])
        return QueryResult("DELETE", [removed] if returning == "removed" else table.rows)

    return handler


def _coerce(table: VirtualTable, column: str, value: Any) -> Any:
    if column not in table.schema:
        return value
    return coerce_param(value, table.schema.type_code(column))


ACTIONS: dict[str, Callable[..., QueryHandler]] = {
    "select": select_all,
    "insert": insert_from_params,
    "update": update_by_id,
    "delete": delete_by_id,
}


__all__ = ["ACTIONS", "delete_by_id", "insert_from_params", "select_all", "update_by_id"]
