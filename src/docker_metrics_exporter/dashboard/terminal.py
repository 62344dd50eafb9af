"""Rich table of one snapshot, for the one-shot `snapshot` command."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.table import Table

from docker_metrics_exporter.collector.units import humanize_size
from docker_metrics_exporter.metrics import Snapshot


def _color_for_cpu(percent: float) -> str:
    if percent < 50:
        return "green"
    elif percent < 80:
        return "yellow"
    return "red"


def _color_for_mem(usage: int, limit: int) -> str:
    if limit <= 0:
        return "white"
    ratio = usage / limit
    if ratio < 0.5:
        return "green"
    elif ratio < 0.8:
        return "yellow"
    return "red"


def build_table(snapshot: Snapshot, source_name: str = "") -> Table:
    title = f"{len(snapshot)} containers"
    if source_name:
        title += f" -- {source_name}"
    if snapshot.captured_at is not None:
        title += f" @ {snapshot.captured_at:%H:%M:%S}"

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("CPU %", justify="right")
    table.add_column("Mem usage / limit", justify="right")
    table.add_column("Net in / out", justify="right")
    table.add_column("Block read / write", justify="right")

    for r in sorted(snapshot, key=lambda r: r.name):
        cpu_color = _color_for_cpu(r.cpu_percent)
        mem_color = "white" if r.mem_unlimited else _color_for_mem(r.mem_usage_bytes, r.mem_limit_bytes)
        table.add_row(
            r.name,
            f"[{cpu_color}]{r.cpu_percent:.2f}[/{cpu_color}]",
            f"[{mem_color}]{humanize_size(r.mem_usage_bytes)}[/{mem_color}] / {humanize_size(r.mem_limit_bytes)}",
            f"{humanize_size(r.net_in_bytes)} / {humanize_size(r.net_out_bytes)}",
            f"{humanize_size(r.block_read_bytes)} / {humanize_size(r.block_write_bytes)}",
        )
    return table


def print_snapshot(snapshot: Snapshot, source_name: str = "", console: Optional[Console] = None):
    console = console or Console()
    if snapshot.is_empty:
        console.print("[dim]No containers reported.[/dim]")
        return
    console.print(build_table(snapshot, source_name))
