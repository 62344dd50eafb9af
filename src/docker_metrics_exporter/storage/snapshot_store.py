"""
In-memory holder for the latest Snapshot. Only the newest capture is kept;
there is no history.

Readers and the single writer never take a lock: replace() swaps one
reference to a fully built, immutable Snapshot, and rebinding an attribute
is atomic, so a reader sees either the old snapshot or the new one, never
a mix of both.
"""

from __future__ import annotations

import logging
from typing import Optional

from docker_metrics_exporter.metrics import Snapshot

log = logging.getLogger(__name__)


class SnapshotStore:

    def __init__(self, initial: Optional[Snapshot] = None):
        self._current = initial if initial is not None else Snapshot.empty()
        self._generation = 0

    def replace(self, snapshot: Snapshot):
        if not isinstance(snapshot, Snapshot):
            raise TypeError(f"expected Snapshot, got {type(snapshot).__name__}")
        self._current = snapshot
        self._generation += 1
        log.debug("Published snapshot #%d with %d containers", self._generation, len(snapshot))

    def read(self) -> Snapshot:
        return self._current

    @property
    def generation(self) -> int:
        """How many snapshots have been published. Only the cycle driver writes it."""
        return self._generation
