"""
Fake InfluxDB write endpoint for testing without a database.

    python -m docker_metrics_exporter.mock.fake_influx_server
    docker-metrics-exporter --mock --target influxdb -p 18086

Accepts both /write (1.x) and /api/v2/write (2.x), prints what it gets and
keeps every request on the server object for tests to inspect.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Dict, List
from urllib.parse import parse_qs, urlsplit

WRITE_PATHS = ("/write", "/api/v2/write")


@dataclass
class ReceivedWrite:
    path: str
    params: Dict[str, str]
    headers: Dict[str, str]
    body: str

    @property
    def lines(self) -> List[str]:
        return [line for line in self.body.splitlines() if line]


class _WriteHandler(BaseHTTPRequestHandler):
    server: "FakeInfluxServer"

    def do_POST(self):
        url = urlsplit(self.path)
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length).decode("utf-8")

        if url.path not in WRITE_PATHS:
            self.send_response(404)
            self.end_headers()
            return

        write = ReceivedWrite(
            path=url.path,
            params={k: v[0] for k, v in parse_qs(url.query).items()},
            headers={k.lower(): v for k, v in self.headers.items()},
            body=body,
        )
        with self.server.lock:
            self.server.writes.append(write)
        if self.server.verbose:
            print(f"{url.path} {write.params}: {len(write.lines)} points")

        status = self.server.status_code
        self.send_response(status)
        if status >= 300:
            error = b'{"error":"simulated failure"}'
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(error)))
            self.end_headers()
            self.wfile.write(error)
        else:
            self.end_headers()

    def log_message(self, format, *args):
        pass  # Suppress request logging noise


class FakeInfluxServer(HTTPServer):

    def __init__(self, host: str = "127.0.0.1", port: int = 18086, status_code: int = 204,
                 verbose: bool = False):
        self.writes: List[ReceivedWrite] = []
        self.status_code = status_code
        self.verbose = verbose
        self.lock = threading.Lock()
        super().__init__((host, port), _WriteHandler)


def run_fake_server(host: str = "127.0.0.1", port: int = 18086):
    server = FakeInfluxServer(host, port, verbose=True)
    print(f"Fake InfluxDB write endpoint running at http://{host}:{port}")
    print("Press Ctrl+C to stop.\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    server.server_close()
    print(f"\nServer stopped. {len(server.writes)} writes received.")


if __name__ == "__main__":
    run_fake_server()
