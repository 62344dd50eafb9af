"""
Core record types for the exporter.

A ContainerRecord is one container's reading from one `docker stats` run.
A Snapshot groups every record from the same run and is never mutated
after it is built -- the next successful run replaces it wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

# Reported in place of a memory limit when the runtime says "unlimited"
MEM_UNLIMITED = 2 ** 64 - 1

# (metric name, record attribute, help text) -- order is the exposition order
PROMETHEUS_METRICS: List[Tuple[str, str, str]] = [
    ("docker_cpu_percent", "cpu_percent", "CPU usage %"),
    ("docker_mem_usage_bytes", "mem_usage_bytes", "Memory used"),
    ("docker_mem_limit_bytes", "mem_limit_bytes", "Memory limit"),
    ("docker_net_input_bytes", "net_in_bytes", "Network In"),
    ("docker_net_output_bytes", "net_out_bytes", "Network Out"),
    ("docker_block_read_bytes", "block_read_bytes", "Block I/O Read"),
    ("docker_block_write_bytes", "block_write_bytes", "Block I/O Write"),
]

INFLUX_MEASUREMENT = "docker_stats"

INFLUX_FIELDS: List[str] = [
    "cpu_percent",
    "mem_usage_bytes",
    "mem_limit_bytes",
    "net_in_bytes",
    "net_out_bytes",
    "block_read_bytes",
    "block_write_bytes",
]


@dataclass(frozen=True)
class ContainerRecord:
    """One container's latest sample."""

    name: str
    cpu_percent: float
    mem_usage_bytes: int
    mem_limit_bytes: int
    net_in_bytes: int
    net_out_bytes: int
    block_read_bytes: int
    block_write_bytes: int
    captured_at: Optional[datetime] = None

    def __post_init__(self):
        for attr in INFLUX_FIELDS:
            if getattr(self, attr) < 0:
                raise ValueError(f"{attr} must be non-negative, got {getattr(self, attr)}")

    @property
    def mem_unlimited(self) -> bool:
        return self.mem_limit_bytes == MEM_UNLIMITED

    def summary(self) -> dict:
        """Return a plain dict for display or logging."""
        return {
            "name": self.name,
            "cpu_percent": round(self.cpu_percent, 2),
            "mem_usage_bytes": self.mem_usage_bytes,
            "mem_limit_bytes": None if self.mem_unlimited else self.mem_limit_bytes,
            "net_in_bytes": self.net_in_bytes,
            "net_out_bytes": self.net_out_bytes,
            "block_read_bytes": self.block_read_bytes,
            "block_write_bytes": self.block_write_bytes,
        }


@dataclass(frozen=True)
class Snapshot:
    """Every record from one capture cycle, keyed by container name."""

    records: Mapping[str, ContainerRecord] = field(default_factory=dict)
    captured_at: Optional[datetime] = None

    def __post_init__(self):
        # Freeze a private copy so the caller can't reach in afterwards
        object.__setattr__(self, "records", MappingProxyType(dict(self.records)))

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls()

    @classmethod
    def from_records(cls, records: List[ContainerRecord], captured_at: datetime) -> "Snapshot":
        by_name: Dict[str, ContainerRecord] = {}
        for record in records:
            by_name[record.name] = record  # last line wins
        return cls(records=by_name, captured_at=captured_at)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[ContainerRecord]:
        return iter(self.records.values())

    def __contains__(self, name: object) -> bool:
        return name in self.records

    def get(self, name: str) -> Optional[ContainerRecord]:
        return self.records.get(name)

    @property
    def is_empty(self) -> bool:
        return not self.records
