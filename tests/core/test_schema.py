"""Tests for column descriptors and parameter coercion."""

from __future__ import annotations

import pytest

from neonmock.core.schema import ColumnDescriptor, PgType, TableSchema, coerce_param, resolve_type_code
from tests.todo_data import TODO_FIELDS


def test_fields_keep_declared_order() -> None:
    schema = TableSchema.from_fields(TODO_FIELDS)

    assert schema.names == ("id", "title", "done", "user_id", "created_at", "updated_at")
    assert schema.fields() == TODO_FIELDS


def test_from_fields_accepts_type_names() -> None:
    schema = TableSchema.from_fields([{"name": "id", "type_code": "int4"}, {"name": "ok", "dataTypeID": "bool"}])

    assert schema.columns == (
        ColumnDescriptor("id", PgType.INT4),
        ColumnDescriptor("ok", PgType.BOOL),
    )


def test_duplicate_columns_rejected() -> None:
    with pytest.raises(ValueError, match="Duplicate column"):
        TableSchema([ColumnDescriptor("id", 23), ColumnDescriptor("id", 25)])


def test_empty_schema_rejected() -> None:
    with pytest.raises(ValueError):
        TableSchema([])


def test_diff_reports_missing_and_extra() -> None:
    schema = TableSchema.from_fields(TODO_FIELDS)

    missing, extra = schema.diff(["id", "title", "colour"])

    assert missing == {"done", "user_id", "created_at", "updated_at"}
    assert extra == {"colour"}


def test_resolve_type_code_rejects_unknown_names() -> None:
    assert resolve_type_code("25") == 25
    with pytest.raises(ValueError, match="Unknown column type"):
        resolve_type_code("geometry")


@pytest.mark.parametrize(
    ("value", "type_code", "expected"),
    [
        ("7", PgType.INT4, 7),
        ("7.0", PgType.INT8, 7),
        ("1e3", PgType.INT4, 1000),
        (" 12 ", PgType.INT2, 12),
        ("2.5", PgType.FLOAT8, 2.5),
        ("true", PgType.BOOL, "true"),
        ("Make tea", PgType.TEXT, "Make tea"),
        (None, PgType.INT4, None),
    ],
)
def test_coerce_param(value: object, type_code: int, expected: object) -> None:
    assert coerce_param(value, type_code) == expected


@pytest.mark.parametrize("value", ["1.9", "abc", "nan", 2.5])
def test_coerce_param_rejects_non_integral_integers(value: object) -> None:
    with pytest.raises(ValueError, match="Invalid integer parameter"):
        coerce_param(value, PgType.INT4)
