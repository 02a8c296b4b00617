"""Shared fixtures for the harness test-suite."""

from __future__ import annotations

import pytest

from neonmock.core.scenario import MockScenario
from neonmock.core.table import VirtualTable
from tests.todo_data import TODO_FIELDS, TODO_TITLES, make_todo

pytest_plugins = ["neonmock.pytest_plugin"]


@pytest.fixture()
def todos(neon_scenario: MockScenario) -> VirtualTable:
    return neon_scenario.add_table("todos", TODO_FIELDS)


@pytest.fixture()
def seeded_todos(neon_scenario: MockScenario) -> VirtualTable:
    rows = [make_todo(index + 1, title) for index, title in enumerate(TODO_TITLES)]
    return neon_scenario.add_table("todos", TODO_FIELDS, rows)
