"""
Pull sink: serves the current snapshot at /metrics in the Prometheus text
exposition format.

Every scrape renders whatever the store holds at that moment. Nothing is
cached between requests, and an empty store still answers 200 with the
HELP/TYPE headers and no samples.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import List, Optional

from docker_metrics_exporter.errors import StartupError
from docker_metrics_exporter.metrics import MEM_UNLIMITED, PROMETHEUS_METRICS, Snapshot
from docker_metrics_exporter.sinks.base import Sink
from docker_metrics_exporter.storage.snapshot_store import SnapshotStore

log = logging.getLogger(__name__)

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


@dataclass
class ScrapeResponse:
    status: int
    content_type: str
    body: bytes


def escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def format_sample_value(value) -> str:
    if isinstance(value, int):
        if value == MEM_UNLIMITED:
            return "+Inf"
        return str(value)
    return repr(float(value))


class _MetricsHandler(BaseHTTPRequestHandler):
    server: "_ExporterHTTPServer"

    def do_GET(self):
        path = self.path.split("?", 1)[0]
        if path == "/metrics":
            self._send(self.server.sink.scrape())
        elif path == "/health":
            self._send(ScrapeResponse(200, "text/plain; charset=utf-8", b"OK\n"))
        else:
            self.send_response(404)
            self.end_headers()

    def _send(self, response: ScrapeResponse):
        try:
            self.send_response(response.status)
            self.send_header("Content-Type", response.content_type)
            self.send_header("Content-Length", str(len(response.body)))
            self.end_headers()
            self.wfile.write(response.body)
        except (BrokenPipeError, ConnectionResetError):
            log.debug("Scraper %s hung up before the response was sent", self.client_address[0])

    def log_message(self, format, *args):
        log.debug("%s - %s", self.client_address[0], format % args)


class _ExporterHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_port = False

    def __init__(self, address, sink: "PrometheusSink"):
        self.sink = sink
        super().__init__(address, _MetricsHandler)


class PrometheusSink(Sink):

    def __init__(self, host: str = "0.0.0.0", port: int = 9187):
        self._host = host
        self._port = port
        self._store: Optional[SnapshotStore] = None
        self._server: Optional[_ExporterHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    def render(self, snapshot: Snapshot) -> str:
        records = sorted(snapshot, key=lambda r: r.name)
        lines: List[str] = []

        for metric, attr, help_text in PROMETHEUS_METRICS:
            lines.append(f"# HELP {metric} {help_text}")
            lines.append(f"# TYPE {metric} gauge")
            for record in records:
                value = format_sample_value(getattr(record, attr))
                lines.append(f'{metric}{{name="{escape_label_value(record.name)}"}} {value}')

        return "\n".join(lines) + "\n"

    def deliver(self, payload: str) -> ScrapeResponse:
        """Package a rendered payload as the HTTP response for one scrape."""
        return ScrapeResponse(200, CONTENT_TYPE, payload.encode("utf-8"))

    def scrape(self) -> ScrapeResponse:
        if self._store is None:
            return self.deliver(self.render(Snapshot.empty()))
        return self.deliver(self.render(self._store.read()))

    @property
    def port(self) -> int:
        """Bound port (useful when constructed with port 0)."""
        if self._server is not None:
            return self._server.server_address[1]
        return self._port

    def start(self, store: SnapshotStore):
        self._store = store
        try:
            self._server = _ExporterHTTPServer((self._host, self._port), self)
        except OSError as e:
            raise StartupError(f"cannot listen on {self._host}:{self._port}: {e}") from e

        self._thread = threading.Thread(
            target=self._server.serve_forever, name="metrics-http", daemon=True
        )
        self._thread.start()
        log.info("Serving metrics on http://%s:%d/metrics", self._host, self.port)

    def stop(self):
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        self._server = None
        log.debug("Metrics endpoint closed")

    def describe(self) -> str:
        return f"Prometheus scrape endpoint http://{self._host}:{self.port}/metrics"
