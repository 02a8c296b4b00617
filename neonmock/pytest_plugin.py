"""pytest fixtures giving each test its own isolated mock scenario."""

from __future__ import annotations

from typing import Iterator

import pytest

from neonmock.core.clock import FixedClock
from neonmock.core.scenario import MockScenario


@pytest.fixture()
def neon_clock() -> FixedClock:
    return FixedClock(start_ms=1_700_000_000_000, step_ms=1)


@pytest.fixture()
def neon_scenario(request: pytest.FixtureRequest, neon_clock: FixedClock) -> Iterator[MockScenario]:
    """A fresh scenario named after the requesting test, dropped at teardown."""

    scenario = MockScenario(scenario_id=request.node.name, clock=neon_clock)
    yield scenario
    scenario.tables.clear()
