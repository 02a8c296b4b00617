"""Timestamp sources used when handlers derive created/updated fields."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Protocol


class Clock(Protocol):
    """Returns the timestamp stored in generated timestamp columns."""

    def now(self) -> int:  # pragma: no cover - interface
        """Return the current time as epoch milliseconds."""


@dataclass(slots=True)
class SystemClock(Clock):
    """Wall-clock time in epoch milliseconds."""

    def now(self) -> int:  # type: ignore[override]
        return time.time_ns() // 1_000_000


@dataclass(slots=True)
class FixedClock(Clock):
    """Deterministic clock that advances by *step_ms* on every read."""

    start_ms: int = 1_700_000_000_000
    step_ms: int = 0
    _reads: int = field(init=False, default=0)

    def now(self) -> int:  # type: ignore[override]
        value = self.start_ms + self._reads * self.step_ms
        self._reads += 1
        return value
