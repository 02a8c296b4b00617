"""Tests for the in-memory row store."""

from __future__ import annotations

import pytest

from neonmock.core.errors import AmbiguousRecordError, RecordNotFoundError, ShapeMismatchError
from neonmock.core.table import VirtualTable, values_equal
from tests.todo_data import TODO_TITLES, make_todo


def test_append_preserves_insertion_order(todos: VirtualTable) -> None:
    for index, title in enumerate(TODO_TITLES):
        todos.append(make_todo(index + 1, title))

    assert [row["title"] for row in todos.rows] == TODO_TITLES
    assert todos.next_id() == len(TODO_TITLES) + 1


def test_append_rejects_missing_columns(todos: VirtualTable) -> None:
    with pytest.raises(ShapeMismatchError) as excinfo:
        todos.append({"id": 1, "title": "Make tea"})

    assert "done" in excinfo.value.missing
    assert len(todos) == 0


def test_rows_returns_copy(seeded_todos: VirtualTable) -> None:
    rows = seeded_todos.rows
    rows.clear()

    assert len(seeded_todos) == len(TODO_TITLES)


def test_find_coerces_text_identifier(seeded_todos: VirtualTable) -> None:
    assert seeded_todos.find("id", "2")["title"] == TODO_TITLES[1]


def test_find_missing_raises(seeded_todos: VirtualTable) -> None:
    with pytest.raises(RecordNotFoundError, match="id = '42'"):
        seeded_todos.find("id", "42")


def test_find_duplicate_raises(todos: VirtualTable) -> None:
    todos.append(make_todo(1, "first"))
    todos.append(make_todo(1, "second"))

    with pytest.raises(AmbiguousRecordError) as excinfo:
        todos.find("id", 1)

    assert excinfo.value.count == 2


def test_update_changes_only_targeted_field(seeded_todos: VirtualTable) -> None:
    before = dict(seeded_todos.find("id", 1))

    updated = seeded_todos.update("id", "1", {"done": "true"})

    assert updated["done"] == "true"
    assert {key: value for key, value in updated.items() if key != "done"} == {
        key: value for key, value in before.items() if key != "done"
    }


def test_update_rejects_unknown_column(seeded_todos: VirtualTable) -> None:
    with pytest.raises(ShapeMismatchError):
        seeded_todos.update("id", 1, {"colour": "red"})


def test_delete_keeps_survivor_order(seeded_todos: VirtualTable) -> None:
    removed = seeded_todos.delete("id", "2")

    assert removed["title"] == TODO_TITLES[1]
    assert [row["id"] for row in seeded_todos.rows] == [1, 3]


@pytest.mark.parametrize(
    ("stored", "wanted", "expected"),
    [
        (1, "1", True),
        (1, "1.0", True),
        (1, "2", False),
        (1, "abc", False),
        ("1", 1, True),
        (True, "true", True),
        (None, "1", False),
    ],
)
def test_values_equal(stored: object, wanted: object, expected: bool) -> None:
    assert values_equal(stored, wanted) is expected
