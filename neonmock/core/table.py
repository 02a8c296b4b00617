"""In-memory row store backing one virtual table for a single scenario."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from neonmock.core.clock import Clock, SystemClock
from neonmock.core.errors import AmbiguousRecordError, RecordNotFoundError, ShapeMismatchError
from neonmock.core.schema import TableSchema


LOGGER = logging.getLogger(__name__)


class VirtualTable:
    """Ordered sequence of records shaped by a fixed :class:`TableSchema`.

    Insertion order is preserved and is the order a SELECT returns. Records are
    plain dictionaries keyed by column name; each one must carry exactly the
    declared columns.
    """

    def __init__(
        self,
        name: str,
        schema: TableSchema,
        rows: Iterable[Mapping[str, Any]] = (),
        *,
        clock: Clock | None = None,
    ) -> None:
        self.name = name
        self.schema = schema
        self.clock: Clock = clock or SystemClock()
        self._rows: list[dict[str, Any]] = []
        for row in rows:
            self.append(row)

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"VirtualTable(name={self.name!r}, rows={len(self._rows)})"

    @property
    def rows(self) -> list[dict[str, Any]]:
        """Return the current records in order (the list is a copy)."""

        return list(self._rows)

    def now(self) -> int:
        return self.clock.now()

    def next_id(self) -> int:
        return len(self._rows) + 1

    def validate(self, record: Mapping[str, Any]) -> None:
        missing, extra = self.schema.diff(record.keys())
        if missing or extra:
            raise ShapeMismatchError(self.name, missing=missing, extra=extra)

    def append(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """Validate and append *record*; return the stored dictionary."""

        self.validate(record)
        stored = {name: record[name] for name in self.schema.names}
        self._rows.append(stored)
        LOGGER.debug("Appended row to %s (rows=%s)", self.name, len(self._rows))
        return stored

    def find(self, column: str, value: Any) -> dict[str, Any]:
        """Return the single record whose *column* equals *value*."""

        return self._rows[self._locate(column, value)]

    def update(self, column: str, value: Any, changes: Mapping[str, Any]) -> dict[str, Any]:
        """Apply *changes* in place to the record matching *column* = *value*."""

        unknown = [key for key in changes if key not in self.schema]
        if unknown:
            raise ShapeMismatchError(self.name, extra=unknown)
        record = self.find(column, value)
        record.update(changes)
        return record

    def delete(self, column: str, value: Any) -> dict[str, Any]:
        """Remove and return the record matching *column* = *value*."""

        removed = self._rows.pop(self._locate(column, value))
        LOGGER.debug("Deleted row from %s (rows=%s)", self.name, len(self._rows))
        return removed

    def _locate(self, column: str, value: Any) -> int:
        if column not in self.schema:
            raise ShapeMismatchError(self.name, extra=[column])
        positions = [
            position
            for position, row in enumerate(self._rows)
            if values_equal(row.get(column), value)
        ]
        if not positions:
            raise RecordNotFoundError(self.name, column, value)
        if len(positions) > 1:
            raise AmbiguousRecordError(self.name, column, value, len(positions))
        return positions[0]


def values_equal(stored: Any, wanted: Any) -> bool:
    """Compare a stored value with a bound parameter sent as text."""

    if stored == wanted:
        return True
    if stored is None or wanted is None:
        return False
    if isinstance(stored, bool) or isinstance(wanted, bool):
        return str(stored).lower() == str(wanted).lower()
    if isinstance(stored, (int, float)) and isinstance(wanted, str):
        try:
            return float(wanted) == stored
        except ValueError:
            return False
    if isinstance(stored, str) and isinstance(wanted, (int, float)):
        return stored == str(wanted)
    return False


__all__ = ["VirtualTable", "values_equal"]
