"""Column descriptors describing the shape of a virtual table's result rows.

The descriptor order is part of the wire contract: client drivers read row
values positionally against the ``fields`` list, so a schema is immutable once
built and the same instance is shared by handlers and the encoder.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Iterable, Mapping


class PgType(IntEnum):
    """PostgreSQL type OIDs commonly reported as ``dataTypeID``."""

    BOOL = 16
    INT8 = 20
    INT2 = 21
    INT4 = 23
    TEXT = 25
    JSON = 114
    FLOAT4 = 700
    FLOAT8 = 701
    VARCHAR = 1043
    DATE = 1082
    TIMESTAMP = 1114
    TIMESTAMPTZ = 1184
    NUMERIC = 1700
    UUID = 2950
    JSONB = 3802


INTEGER_TYPES = frozenset({PgType.INT2, PgType.INT4, PgType.INT8})
FLOAT_TYPES = frozenset({PgType.FLOAT4, PgType.FLOAT8, PgType.NUMERIC})


@dataclass(frozen=True, slots=True)
class ColumnDescriptor:
    name: str
    type_code: int

    def as_field(self) -> dict[str, Any]:
        return {"name": self.name, "dataTypeID": int(self.type_code)}


class TableSchema:
    """Ordered, immutable set of column descriptors."""

    __slots__ = ("_columns", "_index")

    def __init__(self, columns: Iterable[ColumnDescriptor]) -> None:
        resolved = tuple(columns)
        if not resolved:
            raise ValueError("A table schema needs at least one column")
        index: dict[str, int] = {}
        for position, column in enumerate(resolved):
            if not column.name:
                raise ValueError("Column names must be non-empty")
            if column.name in index:
                raise ValueError(f"Duplicate column name '{column.name}'")
            index[column.name] = position
        self._columns = resolved
        self._index = index

    @classmethod
    def from_fields(cls, fields: Iterable[Mapping[str, Any] | ColumnDescriptor]) -> TableSchema:
        """Build a schema from ``{"name", "dataTypeID"}`` mappings or descriptors."""

        columns = []
        for entry in fields:
            if isinstance(entry, ColumnDescriptor):
                columns.append(entry)
                continue
            type_code = entry.get("dataTypeID", entry.get("type_code"))
            if type_code is None:
                raise ValueError(f"Column '{entry.get('name')}' is missing a type code")
            columns.append(ColumnDescriptor(name=str(entry["name"]), type_code=resolve_type_code(type_code)))
        return cls(columns)

    @property
    def columns(self) -> tuple[ColumnDescriptor, ...]:
        return self._columns

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(column.name for column in self._columns)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self):
        return iter(self._columns)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TableSchema):
            return NotImplemented
        return self._columns == other._columns

    def __hash__(self) -> int:
        return hash(self._columns)

    def __repr__(self) -> str:
        return f"TableSchema({list(self._columns)!r})"

    def type_code(self, name: str) -> int:
        return self._columns[self._index[name]].type_code

    def fields(self) -> list[dict[str, Any]]:
        """Return the wire-level field descriptor list in declared order."""

        return [column.as_field() for column in self._columns]

    def diff(self, keys: Iterable[str]) -> tuple[set[str], set[str]]:
        """Return ``(missing, extra)`` column names for a record's *keys*."""

        present = set(keys)
        declared = set(self._index)
        return declared - present, present - declared


def resolve_type_code(value: Any) -> int:
    """Accept a numeric OID or a ``PgType`` member name such as ``"int4"``."""

    if isinstance(value, bool):
        raise ValueError(f"Invalid type code {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    try:
        return int(PgType[text.upper()])
    except KeyError as exc:
        raise ValueError(f"Unknown column type '{value}'") from exc


def coerce_param(value: Any, type_code: int) -> Any:
    """Convert a bound parameter to the Python type implied by *type_code*.

    Drivers serialise parameters as text, so ``"7"`` bound to an ``int4``
    column becomes ``7``. Non-integral values such as ``"1.9"`` are rejected
    for integer columns. Other types pass through untouched.
    """

    if value is None or isinstance(value, bool):
        return value
    if type_code in INTEGER_TYPES and isinstance(value, (str, float)):
        return _to_integer(value)
    if type_code in FLOAT_TYPES and isinstance(value, (str, int)):
        return float(value)
    return value


def _to_integer(value: str | float) -> int:
    number = value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError as exc:
            raise ValueError(f"Invalid integer parameter {value!r}") from exc
    if not math.isfinite(number) or not number.is_integer():
        raise ValueError(f"Invalid integer parameter {value!r}")
    return int(number)


__all__ = [
    "ColumnDescriptor",
    "FLOAT_TYPES",
    "INTEGER_TYPES",
    "PgType",
    "TableSchema",
    "coerce_param",
    "resolve_type_code",
]
