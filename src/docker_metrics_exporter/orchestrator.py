"""
Wires collector -> parser -> store -> sink and owns the process lifecycle.

One background thread runs capture cycles back to back, never overlapping:
capture (bounded by the timeout), parse, publish. Any failure in a cycle
is logged and the previous snapshot stays published. The sink reads the
store on its own schedule.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from docker_metrics_exporter.collector.base import StatsCollector
from docker_metrics_exporter.collector.stats_parser import parse_stats_text
from docker_metrics_exporter.errors import CycleFailure
from docker_metrics_exporter.metrics import Snapshot
from docker_metrics_exporter.sinks.base import Sink
from docker_metrics_exporter.storage.snapshot_store import SnapshotStore

log = logging.getLogger(__name__)


class Orchestrator:

    def __init__(
        self,
        collector: StatsCollector,
        sink: Sink,
        sample_interval: float,
        capture_timeout: float,
        store: Optional[SnapshotStore] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        if capture_timeout >= sample_interval:
            raise ValueError("capture timeout must be shorter than the sample interval")

        self.collector = collector
        self.sink = sink
        self.store = store or SnapshotStore()
        self._interval = sample_interval
        self._timeout = capture_timeout
        self._clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_cycle(self) -> Optional[Snapshot]:
        """One capture cycle. Returns the published snapshot, or None on failure."""
        started = self._clock()
        try:
            text = self.collector.capture(self._timeout)
            snapshot = parse_stats_text(text, captured_at=started)
        except CycleFailure as e:
            self.collector.record_failure()
            if self._stop.is_set():
                log.debug("Capture cycle interrupted by shutdown: %s", e)
                return None
            log.warning(
                "Capture cycle failed (%d in a row), keeping previous snapshot: %s",
                self.collector.consecutive_failures, e,
            )
            return None
        except Exception:
            self.collector.record_failure()
            log.exception("Unexpected error in capture cycle, keeping previous snapshot")
            return None

        self.collector.record_success()
        self.store.replace(snapshot)
        return snapshot

    def _loop(self):
        while not self._stop.is_set():
            started = time.monotonic()
            self.run_cycle()
            elapsed = time.monotonic() - started
            delay = max(0.0, self._interval - elapsed) + self.collector.backoff_delay()
            if self._stop.wait(delay):
                break
        log.debug("Sampling loop stopped")

    def start(self):
        """Start the sink, then the sampling loop. Raises StartupError if the sink can't start."""
        log.info(
            "Sampling %s every %.1fs (timeout %.1fs) -> %s",
            self.collector.name(), self._interval, self._timeout, self.sink.describe(),
        )
        self.sink.start(self.store)
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="sampler", daemon=True)
        self._thread.start()

    def stop(self):
        self._stop.set()
        # Kills any stats subprocess in flight so the loop can exit promptly
        self.collector.close()
        if self._thread is not None:
            self._thread.join(timeout=self._timeout + 1.0)
        self.sink.stop()

    def run_forever(self, stop: Optional[threading.Event] = None):
        """Block until `stop` is set or Ctrl+C, then shut everything down."""
        stop = stop or threading.Event()
        self.start()
        try:
            while not stop.wait(0.5):
                pass
        except KeyboardInterrupt:
            pass
        finally:
            log.info("Shutting down")
            self.stop()
