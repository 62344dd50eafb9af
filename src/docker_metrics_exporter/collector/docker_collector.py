"""
Collector that shells out to the container runtime's stats command.

Uses single-shot mode (--no-stream): each call spawns the command, waits for
it to print one complete table and exit, and returns that text. A streaming
invocation would interleave refresh cycles on one pipe with no reliable
delimiter between them.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import threading
from typing import List, Optional

from docker_metrics_exporter.collector.base import StatsCollector
from docker_metrics_exporter.collector.stats_parser import STATS_FORMAT
from docker_metrics_exporter.errors import (
    CollectorError,
    CollectorTimeout,
    RuntimeUnavailable,
    StartupError,
)

log = logging.getLogger(__name__)


def _decode(data: Optional[bytes]) -> str:
    return (data or b"").decode("utf-8", errors="replace")


class DockerStatsCollector(StatsCollector):

    def __init__(
        self,
        runtime: str = "docker",
        backoff_base: float = 1.0,
        backoff_max: float = 30.0,
    ):
        super().__init__(backoff_base=backoff_base, backoff_max=backoff_max)
        binary = shutil.which(runtime)
        if binary is None:
            raise StartupError(f"container runtime {runtime!r} not found on PATH")

        self._runtime = runtime
        self._binary = binary
        self._lock = threading.Lock()
        self._proc: Optional[subprocess.Popen] = None
        self._closed = False

    def command(self) -> List[str]:
        return [self._binary, "stats", "--no-stream", "--no-trunc", "--format", STATS_FORMAT]

    def capture(self, timeout: float) -> str:
        with self._lock:
            if self._closed:
                raise CollectorError("collector is closed")
            try:
                proc = subprocess.Popen(
                    self.command(),
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                )
            except OSError as e:
                raise RuntimeUnavailable(127, str(e)) from e
            self._proc = proc

        try:
            try:
                stdout, stderr = proc.communicate(timeout=timeout)
            except subprocess.TimeoutExpired:
                log.debug("Killing stats command (pid %d) after %.1fs", proc.pid, timeout)
                proc.kill()
                proc.communicate()
                raise CollectorTimeout(timeout) from None
        finally:
            with self._lock:
                self._proc = None

        if proc.returncode != 0:
            raise RuntimeUnavailable(proc.returncode, _decode(stderr))
        return _decode(stdout)

    def name(self) -> str:
        return f"{self._runtime} stats ({self._binary})"

    def close(self):
        with self._lock:
            self._closed = True
            proc = self._proc
        if proc is not None and proc.poll() is None:
            log.debug("Terminating in-flight stats command (pid %d)", proc.pid)
            proc.kill()
