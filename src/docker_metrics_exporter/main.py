"""
docker-metrics-exporter entry point.

Usage:
    docker-metrics-exporter                                   Prometheus endpoint on :9187
    docker-metrics-exporter --target influxdb --host db --db metrics
    docker-metrics-exporter --mock                            Simulated containers
    docker-metrics-exporter snapshot                          One-shot table
"""

from __future__ import annotations

import logging
import signal
import threading

import click

from docker_metrics_exporter import __version__
from docker_metrics_exporter.collector.base import StatsCollector
from docker_metrics_exporter.collector.docker_collector import DockerStatsCollector
from docker_metrics_exporter.collector.mock_collector import MockStatsCollector
from docker_metrics_exporter.config import ExporterConfig, Target
from docker_metrics_exporter.errors import ConfigError, StartupError
from docker_metrics_exporter.orchestrator import Orchestrator
from docker_metrics_exporter.sinks.base import Sink
from docker_metrics_exporter.sinks.influx import InfluxSink
from docker_metrics_exporter.sinks.prometheus import PrometheusSink


log = logging.getLogger("docker_metrics_exporter")

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


def build_collector(config: ExporterConfig) -> StatsCollector:
    if config.mock:
        return MockStatsCollector(glitch_rate=0.05)
    return DockerStatsCollector(runtime=config.runtime)


def build_sink(config: ExporterConfig) -> Sink:
    if config.target is Target.INFLUX:
        return InfluxSink(
            host=config.influx_host,
            port=config.influx_port,
            database_or_org=config.influx_database_or_org,
            version=config.influx_version,
            bucket=config.influx_bucket,
            token=config.influx_token,
            push_interval=config.push_interval,
        )
    return PrometheusSink(host=config.listen_host, port=config.listen_port)


@click.group(invoke_without_command=True, context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="docker-metrics-exporter")
@click.option("--target", type=click.Choice([t.value for t in Target]), default="prometheus",
              show_default=True, help="Export model: Prometheus scrape endpoint or InfluxDB push")
@click.option("-p", "--port", type=click.IntRange(0, 65535), default=None,
              help="Listen port (prometheus, default 9187) or InfluxDB port (default 8086)")
@click.option("--host", default=None,
              help="Bind address (prometheus, default 0.0.0.0) or InfluxDB host (default localhost)")
@click.option("--db", default=None, help="InfluxDB database (1.x) or organization (2.x)")
@click.option("--interval", type=click.FloatRange(min=0, min_open=True), default=5.0,
              show_default=True, help="Seconds between capture cycles")
@click.option("--timeout", type=float, default=None,
              help="Stats command timeout in seconds (default: 80% of --interval)")
@click.option("--push-interval", type=float, default=None,
              help="Seconds between InfluxDB writes (default: --interval)")
@click.option("--influx-version", type=click.Choice(["1", "2"]), default=None,
              help="InfluxDB write API version (default 1)")
@click.option("--bucket", default=None, help="InfluxDB 2.x bucket (default metrics)")
@click.option("--token", default=None, help="InfluxDB 2.x API token")
@click.option("--runtime", default="docker", show_default=True,
              help="Container runtime CLI that provides `stats`")
@click.option("--mock", is_flag=True, default=False, help="Use simulated containers")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx, target: str, port: int, host: str, db: str, interval: float, timeout: float,
        push_interval: float, influx_version: str, bucket: str, token: str, runtime: str,
        mock: bool, verbose: bool):
    """Export `docker stats` to Prometheus or InfluxDB."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = ExporterConfig.from_options(
            target=target,
            host=host,
            port=port,
            db=db,
            interval=interval,
            timeout=timeout,
            push_interval=push_interval,
            influx_version=int(influx_version) if influx_version else None,
            bucket=bucket,
            token=token,
            runtime=runtime,
            mock=mock,
        )
    except ConfigError as e:
        raise click.UsageError(str(e), ctx=ctx)

    ctx.obj = config

    # If no subcommand, run the exporter
    if ctx.invoked_subcommand is None:
        try:
            collector = build_collector(config)
            orchestrator = Orchestrator(
                collector,
                build_sink(config),
                sample_interval=config.sample_interval,
                capture_timeout=config.capture_timeout,
            )
            log.info("Starting docker-metrics-exporter v%s", __version__)

            stop = threading.Event()
            signal.signal(signal.SIGTERM, lambda signum, frame: stop.set())
            orchestrator.run_forever(stop)
        except StartupError as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1)


@cli.command()
@click.pass_context
def snapshot(ctx):
    """Run one capture cycle and print the containers as a table."""
    from docker_metrics_exporter.collector.stats_parser import parse_stats_text
    from docker_metrics_exporter.dashboard.terminal import print_snapshot
    from docker_metrics_exporter.errors import CycleFailure

    config: ExporterConfig = ctx.obj

    try:
        collector = build_collector(config)
    except StartupError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    try:
        snap = parse_stats_text(collector.capture(config.capture_timeout))
    except CycleFailure as e:
        click.echo(f"Capture failed: {e}", err=True)
        raise SystemExit(1)
    finally:
        collector.close()

    print_snapshot(snap, source_name=collector.name())


if __name__ == "__main__":
    cli()
