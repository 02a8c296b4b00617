"""Tests for exact-text query dispatch."""

from __future__ import annotations

import logging
import threading

import pytest

from neonmock.core.errors import HandlerError, UnmatchedQueryError
from neonmock.core.handlers import insert_from_params, select_all
from neonmock.core.registry import QueryRegistry, QueryResult
from neonmock.core.table import VirtualTable
from tests.todo_data import SELECT_TODOS, USER_ID


def test_resolve_is_whitespace_sensitive(todos: VirtualTable) -> None:
    registry = QueryRegistry()
    registry.register("SELECT * FROM todos WHERE user_id=$1;", todos, select_all())

    assert registry.resolve(SELECT_TODOS) is None
    with pytest.raises(UnmatchedQueryError):
        registry.dispatch(SELECT_TODOS, [USER_ID])


def test_unmatched_query_carries_literal_text() -> None:
    registry = QueryRegistry()

    with pytest.raises(UnmatchedQueryError) as excinfo:
        registry.execute("DROP TABLE todos;", [])

    assert excinfo.value.sql == "DROP TABLE todos;"
    assert "DROP TABLE todos;" in str(excinfo.value)
    assert registry.unmatched == ["DROP TABLE todos;"]


def test_duplicate_registration_rejected(todos: VirtualTable) -> None:
    registry = QueryRegistry()
    registry.register(SELECT_TODOS, todos, select_all())

    with pytest.raises(ValueError, match="already registered"):
        registry.register(SELECT_TODOS, todos, select_all())


def test_decorator_registers_handler_and_passes_params(seeded_todos: VirtualTable) -> None:
    registry = QueryRegistry()
    seen: list[list[object]] = []

    @registry.query("SELECT title FROM todos WHERE id = $1;", seeded_todos)
    def by_id(params: list[object], table: VirtualTable) -> QueryResult:
        seen.append(params)
        return QueryResult("SELECT", [table.find("id", params[0])])

    result, table = registry.dispatch("SELECT title FROM todos WHERE id = $1;", ["2"])

    assert table is seeded_todos
    assert seen == [["2"]]
    assert result.rows[0]["id"] == 2


def test_handlers_may_return_plain_tuples(seeded_todos: VirtualTable) -> None:
    registry = QueryRegistry()
    registry.register(SELECT_TODOS, seeded_todos, lambda params, table: ("SELECT", table.rows))

    body = registry.execute(SELECT_TODOS, [USER_ID])

    assert body["command"] == "SELECT"
    assert body["rowCount"] == 3


def test_handlers_returning_garbage_fail(todos: VirtualTable) -> None:
    registry = QueryRegistry()
    registry.register(SELECT_TODOS, todos, lambda params, table: table.rows)

    with pytest.raises(HandlerError, match="must return") as excinfo:
        registry.execute(SELECT_TODOS, [])

    assert isinstance(excinfo.value.__cause__, TypeError)
    assert excinfo.value.sql == SELECT_TODOS


def test_concurrent_inserts_are_serialised(todos: VirtualTable) -> None:
    registry = QueryRegistry()
    sql = "INSERT INTO todos (title, done, user_id) VALUES ($1, false, $2) RETURNING *;"
    registry.register(sql, todos, insert_from_params(["title", "user_id"], defaults={"done": "false"}))
    workers = [
        threading.Thread(target=registry.execute, args=(sql, [f"todo {index}", str(USER_ID)]))
        for index in range(20)
    ]

    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    assert sorted(row["id"] for row in todos.rows) == list(range(1, 21))


def test_unmatched_query_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    registry = QueryRegistry()

    with caplog.at_level(logging.WARNING, logger="neonmock.core.registry"):
        with pytest.raises(UnmatchedQueryError):
            registry.dispatch("DROP TABLE todos;")

    assert "DROP TABLE todos;" in caplog.text
