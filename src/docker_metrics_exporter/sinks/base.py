"""
Sink interface.

A sink turns a Snapshot into its destination's wire format (render) and
hands that payload on (deliver). What triggers a delivery is up to the sink:
the pull sink answers scrapes, the push sink runs its own timer. Either way
start() returns immediately and stop() tears the background work down.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from docker_metrics_exporter.metrics import Snapshot
from docker_metrics_exporter.storage.snapshot_store import SnapshotStore


class Sink(ABC):

    @abstractmethod
    def render(self, snapshot: Snapshot) -> str:
        """Serialize a snapshot into this sink's wire representation."""
        ...

    @abstractmethod
    def deliver(self, payload: str) -> Any:
        """Hand a rendered payload to its destination."""
        ...

    @abstractmethod
    def start(self, store: SnapshotStore):
        """Begin serving or pushing from `store` in the background."""
        ...

    @abstractmethod
    def stop(self):
        """Stop background work without waiting on in-flight network I/O."""
        ...

    @abstractmethod
    def describe(self) -> str:
        """Where the data goes, for the startup banner."""
        ...
