"""
Push sink: writes the current snapshot to InfluxDB in line protocol on its
own timer.

A failed write (transport error or non-2xx) is logged and simply waits for
the next tick -- no immediate retry, and the timer never blocks on it.
Supports the 1.x /write endpoint and the 2.x /api/v2/write endpoint.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

import httpx

from docker_metrics_exporter.errors import SinkDeliveryError
from docker_metrics_exporter.metrics import (
    INFLUX_FIELDS,
    INFLUX_MEASUREMENT,
    ContainerRecord,
    Snapshot,
)
from docker_metrics_exporter.sinks.base import Sink
from docker_metrics_exporter.storage.snapshot_store import SnapshotStore

log = logging.getLogger(__name__)


def escape_tag(value: str) -> str:
    """Escape a tag key or value for line protocol."""
    return (
        value.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace("=", "\\=")
        .replace(" ", "\\ ")
    )


def format_host(host: str) -> str:
    """Bracket IPv6 literals so they can sit in front of a :port."""
    if ":" in host and not host.startswith("["):
        return f"[{host}]"
    return host


def to_nanoseconds(ts: datetime) -> int:
    # Integer math so nanosecond timestamps don't pick up float rounding
    seconds = int(ts.timestamp())
    return seconds * 1_000_000_000 + ts.microsecond * 1000


def format_point(record: ContainerRecord, timestamp_ns: int) -> str:
    fields: List[str] = []
    for attr in INFLUX_FIELDS:
        if attr == "mem_limit_bytes" and record.mem_unlimited:
            continue  # does not fit a signed 64-bit integer field
        value = getattr(record, attr)
        if isinstance(value, int):
            fields.append(f"{attr}={value}i")
        else:
            fields.append(f"{attr}={float(value)!r}")

    return f"{INFLUX_MEASUREMENT},name={escape_tag(record.name)} {','.join(fields)} {timestamp_ns}"


class InfluxSink(Sink):

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8086,
        database_or_org: str = "metrics",
        version: int = 1,
        bucket: str = "metrics",
        token: Optional[str] = None,
        push_interval: float = 5.0,
        timeout_seconds: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ):
        if version not in (1, 2):
            raise ValueError(f"unsupported InfluxDB version: {version}")

        self._base_url = f"http://{format_host(host)}:{port}"
        self._database_or_org = database_or_org
        self._version = version
        self._bucket = bucket
        self._token = token
        self._push_interval = push_interval
        # A push must finish before the next tick is due
        timeout = timeout_seconds if timeout_seconds is not None else max(0.5, push_interval * 0.8)
        self._client = client or httpx.Client(timeout=timeout)

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._store: Optional[SnapshotStore] = None

    @property
    def write_url(self) -> str:
        if self._version == 2:
            return f"{self._base_url}/api/v2/write"
        return f"{self._base_url}/write"

    def _params(self) -> Dict[str, str]:
        if self._version == 2:
            return {"org": self._database_or_org, "bucket": self._bucket, "precision": "ns"}
        return {"db": self._database_or_org, "precision": "ns"}

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "text/plain; charset=utf-8"}
        if self._version == 2 and self._token:
            headers["Authorization"] = f"Token {self._token}"
        return headers

    def render(self, snapshot: Snapshot) -> str:
        if snapshot.is_empty:
            return ""
        captured_at = snapshot.captured_at or datetime.now(timezone.utc)
        timestamp_ns = to_nanoseconds(captured_at)
        lines = [format_point(r, timestamp_ns) for r in sorted(snapshot, key=lambda r: r.name)]
        return "\n".join(lines) + "\n"

    def deliver(self, payload: str) -> httpx.Response:
        try:
            response = self._client.post(
                self.write_url,
                params=self._params(),
                headers=self._headers(),
                content=payload.encode("utf-8"),
            )
        except httpx.HTTPError as e:
            raise SinkDeliveryError(f"write to {self.write_url} failed: {e}") from e

        if not response.is_success:
            raise SinkDeliveryError(
                f"write to {self.write_url} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    def push(self, snapshot: Snapshot) -> bool:
        """Write one snapshot. Returns False if there was nothing to send."""
        if snapshot.is_empty:
            log.debug("No containers yet, skipping push")
            return False
        self.deliver(self.render(snapshot))
        log.debug("Pushed %d containers to %s", len(snapshot), self.write_url)
        return True

    def tick(self):
        """One timer tick: push the current snapshot, log any failure."""
        if self._store is None:
            return
        try:
            self.push(self._store.read())
        except SinkDeliveryError as e:
            log.warning("InfluxDB push failed, will retry next tick: %s", e)
        except Exception:
            log.exception("Unexpected error during InfluxDB push, will retry next tick")

    def _run(self):
        while not self._stop.wait(self._push_interval):
            self.tick()

    def start(self, store: SnapshotStore):
        self._store = store
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="influx-push", daemon=True)
        self._thread.start()
        log.info("Pushing to %s every %.1fs", self.write_url, self._push_interval)

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            # Don't wait out a request in flight; the daemon thread is abandoned
            self._thread.join(timeout=0.1)
            if self._thread.is_alive():
                log.debug("Abandoning in-flight InfluxDB push")
                return
        self._client.close()

    def describe(self) -> str:
        target = self._database_or_org
        if self._version == 2:
            target = f"org={self._database_or_org} bucket={self._bucket}"
        return f"InfluxDB {self._version}.x at {self._base_url} ({target})"
