"""
Per-stage wall-clock timers for merge runs.

Each run owns a StageTimers instance; the orchestrator wraps merge, deliver
and cleanup in ``timer(name)`` and logs the totals when the run finishes.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Dict


class StageTimers:
    """Accumulate elapsed seconds per stage name."""

    def __init__(self) -> None:
        self.totals: Dict[str, float] = {}

    @contextmanager
    def timer(self, name: str):
        start_time = time.perf_counter()
        try:
            yield
        finally:
            elapsed_time = time.perf_counter() - start_time
            self.totals[name] = self.totals.get(name, 0.0) + elapsed_time

    def as_millis(self) -> Dict[str, int]:
        """Totals rounded to whole milliseconds, for log fields."""
        return {name: round(seconds * 1000) for name, seconds in self.totals.items()}

    @property
    def total_seconds(self) -> float:
        return sum(self.totals.values())
