"""
Process-wide exporter configuration. Built once at startup from the CLI
options and never changed afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from docker_metrics_exporter.errors import ConfigError

DEFAULT_LISTEN_HOST = "0.0.0.0"
DEFAULT_LISTEN_PORT = 9187
DEFAULT_INFLUX_HOST = "localhost"
DEFAULT_INFLUX_PORT = 8086
DEFAULT_INFLUX_DB = "metrics"
DEFAULT_SAMPLE_INTERVAL = 5.0

# Capture timeout as a share of the sample interval when not given
TIMEOUT_FRACTION = 0.8


class Target(str, Enum):
    PROMETHEUS = "prometheus"
    INFLUX = "influxdb"


@dataclass(frozen=True)
class ExporterConfig:
    target: Target = Target.PROMETHEUS
    listen_host: str = DEFAULT_LISTEN_HOST
    listen_port: int = DEFAULT_LISTEN_PORT
    influx_host: str = DEFAULT_INFLUX_HOST
    influx_port: int = DEFAULT_INFLUX_PORT
    influx_database_or_org: str = DEFAULT_INFLUX_DB
    influx_version: int = 1
    influx_bucket: str = DEFAULT_INFLUX_DB
    influx_token: Optional[str] = None
    sample_interval: float = DEFAULT_SAMPLE_INTERVAL
    capture_timeout: float = DEFAULT_SAMPLE_INTERVAL * TIMEOUT_FRACTION
    push_interval: float = DEFAULT_SAMPLE_INTERVAL
    runtime: str = "docker"
    mock: bool = False

    def __post_init__(self):
        if self.sample_interval <= 0:
            raise ConfigError("--interval must be positive")
        if self.capture_timeout <= 0:
            raise ConfigError("--timeout must be positive")
        if self.capture_timeout >= self.sample_interval:
            raise ConfigError(
                f"--timeout ({self.capture_timeout}s) must be less than "
                f"--interval ({self.sample_interval}s)"
            )
        if self.push_interval <= 0:
            raise ConfigError("--push-interval must be positive")
        if self.influx_version not in (1, 2):
            raise ConfigError(f"unsupported InfluxDB version: {self.influx_version}")
        for port in (self.listen_port, self.influx_port):
            if not 0 <= port <= 65535:
                raise ConfigError(f"port out of range: {port}")
        if not self.runtime:
            raise ConfigError("--runtime must name a command")

    @classmethod
    def from_options(
        cls,
        target: str = "prometheus",
        host: Optional[str] = None,
        port: Optional[int] = None,
        db: Optional[str] = None,
        interval: float = DEFAULT_SAMPLE_INTERVAL,
        timeout: Optional[float] = None,
        push_interval: Optional[float] = None,
        influx_version: Optional[int] = None,
        bucket: Optional[str] = None,
        token: Optional[str] = None,
        runtime: str = "docker",
        mock: bool = False,
    ) -> "ExporterConfig":
        """Validate CLI options and resolve per-target defaults.

        --host and --port mean the bind address for prometheus and the
        server address for influxdb. Options that only make sense for the
        other target raise ConfigError rather than being silently ignored.
        """
        try:
            resolved = Target(target)
        except ValueError:
            raise ConfigError(f"unknown target {target!r}") from None

        if timeout is None:
            timeout = interval * TIMEOUT_FRACTION

        if resolved is Target.PROMETHEUS:
            influx_only = {
                "--db": db,
                "--push-interval": push_interval,
                "--influx-version": influx_version,
                "--bucket": bucket,
                "--token": token,
            }
            given = [flag for flag, value in influx_only.items() if value is not None]
            if given:
                raise ConfigError(f"{', '.join(given)} only apply to --target influxdb")

            return cls(
                target=resolved,
                listen_host=host or DEFAULT_LISTEN_HOST,
                listen_port=DEFAULT_LISTEN_PORT if port is None else port,
                sample_interval=interval,
                capture_timeout=timeout,
                runtime=runtime,
                mock=mock,
            )

        version = influx_version or 1
        if version == 1 and (bucket is not None or token is not None):
            raise ConfigError("--bucket and --token need --influx-version 2")

        return cls(
            target=resolved,
            influx_host=host or DEFAULT_INFLUX_HOST,
            influx_port=DEFAULT_INFLUX_PORT if port is None else port,
            influx_database_or_org=db or DEFAULT_INFLUX_DB,
            influx_version=version,
            influx_bucket=bucket or DEFAULT_INFLUX_DB,
            influx_token=token,
            sample_interval=interval,
            capture_timeout=timeout,
            push_interval=interval if push_interval is None else push_interval,
            runtime=runtime,
            mock=mock,
        )
