"""
Collector that reads from the fake stats generator.
Used for local development on machines without a container runtime.
"""

from docker_metrics_exporter.collector.base import StatsCollector
from docker_metrics_exporter.mock.generator import FakeDockerStats


class MockStatsCollector(StatsCollector):
    """Wraps the mock generator as a standard collector."""

    def __init__(self, seed: int = 42, containers: int = 5, glitch_rate: float = 0.0):
        super().__init__()
        self._stats = FakeDockerStats(seed=seed, containers=containers, glitch_rate=glitch_rate)

    def capture(self, timeout: float) -> str:
        return self._stats.table()

    def name(self) -> str:
        return f"Mock docker stats ({self._stats.container_count} simulated containers)"
