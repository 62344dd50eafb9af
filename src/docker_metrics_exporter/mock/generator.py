"""
Mock `docker stats` generator.

Produces fake but realistic tables so we can develop and test without a
container runtime. Counters (network, block I/O) only grow; CPU and memory
wander around a per-container baseline.
"""

import math
import random
from dataclasses import dataclass
from typing import List

from docker_metrics_exporter.collector.stats_parser import FIELD_DELIMITER
from docker_metrics_exporter.collector.units import IO_SEPARATOR, format_size

_SERVICE_NAMES = ["web", "api", "worker", "redis", "postgres", "nginx", "queue", "cron"]


@dataclass
class _FakeContainer:
    name: str
    cpu_base: float
    mem_base: int
    mem_limit: int
    net_in: int = 0
    net_out: int = 0
    block_read: int = 0
    block_write: int = 0


class FakeDockerStats:

    def __init__(self, seed: int = 42, containers: int = 5, glitch_rate: float = 0.0):
        self._rng = random.Random(seed)
        self._tick = 0
        self.glitch_rate = glitch_rate
        self._containers: List[_FakeContainer] = []

        for i in range(containers):
            service = _SERVICE_NAMES[i % len(_SERVICE_NAMES)]
            self._containers.append(_FakeContainer(
                name=f"{service}-{i // len(_SERVICE_NAMES) + 1}",
                cpu_base=self._rng.uniform(0.5, 40.0),
                mem_base=self._rng.randint(20, 900) * 1024 ** 2,
                mem_limit=self._rng.choice([512, 1024, 2048, 7940]) * 1024 ** 2,
            ))

    @property
    def container_count(self) -> int:
        return len(self._containers)

    def table(self) -> str:
        """Generate one table, advancing the simulation clock."""
        self._tick += 1
        lines = []

        for c in self._containers:
            # A container that is restarting shows dashes instead of numbers
            if self.glitch_rate and self._rng.random() < self.glitch_rate:
                lines.append(FIELD_DELIMITER.join([c.name, "--", "-- / --", "-- / --", "-- / --"]))
                continue

            wave = math.sin(self._tick * 0.1 + c.cpu_base)
            cpu = max(0.0, c.cpu_base * (1 + 0.5 * wave) + self._rng.gauss(0, 1.0))
            mem = min(c.mem_limit, max(1024 ** 2, int(c.mem_base * (1 + 0.1 * wave))))

            c.net_in += self._rng.randint(0, 200_000)
            c.net_out += self._rng.randint(0, 80_000)
            c.block_read += self._rng.randint(0, 4096) * 512
            c.block_write += self._rng.randint(0, 1024) * 512

            lines.append(FIELD_DELIMITER.join([
                c.name,
                f"{cpu:.2f}%",
                format_size(mem, "MiB") + IO_SEPARATOR + format_size(c.mem_limit, "MiB"),
                format_size(c.net_in, "kB") + IO_SEPARATOR + format_size(c.net_out, "kB"),
                format_size(c.block_read, "MB") + IO_SEPARATOR + format_size(c.block_write, "MB"),
            ]))

        return "\n".join(lines) + "\n"
