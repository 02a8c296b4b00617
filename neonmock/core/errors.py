"""Failure taxonomy for the query mock harness.

Every error here is a test-authoring defect rather than a runtime condition,
so nothing in the harness retries or substitutes a fallback result.
"""

from __future__ import annotations

from typing import Any, Iterable


class MockHarnessError(Exception):
    """Base class for all harness failures."""


class UnmatchedQueryError(MockHarnessError):
    """Raised when the incoming SQL text has no registered handler."""

    def __init__(self, sql: str) -> None:
        super().__init__(f"No handler registered for query: {sql!r}")
        self.sql = sql


class RecordNotFoundError(MockHarnessError, LookupError):
    """Raised when an identifier lookup matches no row."""

    def __init__(self, table: str, column: str, value: Any) -> None:
        super().__init__(f"No row in '{table}' where {column} = {value!r}")
        self.table = table
        self.column = column
        self.value = value


class AmbiguousRecordError(MockHarnessError, LookupError):
    """Raised when an identifier lookup matches more than one row."""

    def __init__(self, table: str, column: str, value: Any, count: int) -> None:
        super().__init__(f"Expected one row in '{table}' where {column} = {value!r}, found {count}")
        self.table = table
        self.column = column
        self.value = value
        self.count = count


class ShapeMismatchError(MockHarnessError, ValueError):
    """Raised when a record's keys disagree with the declared columns."""

    def __init__(self, table: str, missing: Iterable[str] = (), extra: Iterable[str] = ()) -> None:
        self.table = table
        self.missing = sorted(missing)
        self.extra = sorted(extra)
        parts = []
        if self.missing:
            parts.append("missing " + ", ".join(self.missing))
        if self.extra:
            parts.append("unexpected " + ", ".join(self.extra))
        super().__init__(f"Record shape mismatch for '{table}': " + "; ".join(parts))


class MockRequestError(MockHarnessError, ValueError):
    """Raised when an intercepted request body is not valid protocol JSON."""


class HandlerError(MockHarnessError):
    """Raised when a registered handler fails with a non-harness exception.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, sql: str, cause: BaseException) -> None:
        super().__init__(f"Handler for {sql!r} failed: {type(cause).__name__}: {cause}")
        self.sql = sql
        self.cause = cause


__all__ = [
    "AmbiguousRecordError",
    "HandlerError",
    "MockHarnessError",
    "MockRequestError",
    "RecordNotFoundError",
    "ShapeMismatchError",
    "UnmatchedQueryError",
]
