"""Encode handler output into the SQL-over-HTTP response body.

The real driver indexes each row value by its position in ``fields``, so rows
are emitted as positional lists in declared column order, never as objects.
The body carries exactly ``fields``, ``rows``, ``rowCount`` and ``command``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping

from neonmock.core.errors import ShapeMismatchError
from neonmock.core.schema import TableSchema

COMMANDS = frozenset({"SELECT", "INSERT", "UPDATE", "DELETE"})


@dataclass(slots=True, frozen=True)
class ResultEncoder:
    """Projects records onto a fixed schema.

    Calling the encoder directly, ``encoder("SELECT", rows)``, is shorthand for
    :meth:`encode` and mirrors the factory style test authors reach for.
    """

    schema: TableSchema
    table_name: str = "table"

    def __call__(self, command: str, rows: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
        return self.encode(command, rows)

    def encode(self, command: str, rows: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
        if command not in COMMANDS:
            raise ValueError(f"Unsupported command tag '{command}'")
        encoded_rows = [self.project(row) for row in rows]
        return {
            "fields": self.schema.fields(),
            "rows": encoded_rows,
            "rowCount": len(encoded_rows),
            "command": command,
        }

    def project(self, row: Mapping[str, Any]) -> list[Any]:
        missing, extra = self.schema.diff(row.keys())
        if missing or extra:
            raise ShapeMismatchError(self.table_name, missing=missing, extra=extra)
        return [row[name] for name in self.schema.names]


def encode_result(
    schema: TableSchema, command: str, rows: Iterable[Mapping[str, Any]]
) -> dict[str, Any]:
    return ResultEncoder(schema).encode(command, rows)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(payload: Any) -> str:
    """Serialise an encoded body, rendering timestamps as ISO-8601 text."""

    return json.dumps(payload, default=_json_default, ensure_ascii=False)


__all__ = ["COMMANDS", "ResultEncoder", "encode_result", "to_json"]
