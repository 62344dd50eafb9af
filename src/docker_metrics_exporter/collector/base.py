"""
Base collector interface.

A collector is anything that can produce one complete `docker stats` table
as text. Parsing lives elsewhere, so the orchestrator and the tests can swap
a real subprocess for canned text without touching anything downstream.

Collectors also keep the consecutive-failure count that drives backoff
between failed cycles.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class StatsCollector(ABC):
    """Interface for all stats sources."""

    def __init__(self, backoff_base: float = 1.0, backoff_max: float = 30.0):
        self._backoff_base = backoff_base
        self._backoff_max = backoff_max
        self._consecutive_failures = 0

    @abstractmethod
    def capture(self, timeout: float) -> str:
        """Return one full stats table, or raise CollectorError."""
        ...

    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this source."""
        ...

    def close(self):
        """Abort any capture in flight. Safe to call more than once."""

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def record_success(self):
        self._consecutive_failures = 0

    def record_failure(self):
        self._consecutive_failures += 1

    def backoff_delay(self) -> float:
        """Extra wait before the next cycle: doubles per failure, capped."""
        if self._consecutive_failures == 0 or self._backoff_base <= 0:
            return 0.0
        delay = self._backoff_base * (2 ** (self._consecutive_failures - 1))
        return min(delay, self._backoff_max)
