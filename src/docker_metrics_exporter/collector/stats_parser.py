"""
Parser for one complete `docker stats --no-stream` table, as printed with
the collector's --format template:

    <name>,<cpu%>,<mem usage> / <mem limit>,<net in> / <net out>,<block read> / <block write>

Bad lines are skipped with a warning. A capture with no usable line at all
is a cycle failure, so the caller keeps whatever snapshot it already had.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from docker_metrics_exporter.collector.units import (
    parse_io_pair,
    parse_mem_pair,
    parse_percent,
)
from docker_metrics_exporter.errors import CycleFailure, ParseError
from docker_metrics_exporter.metrics import ContainerRecord, Snapshot

log = logging.getLogger(__name__)

FIELD_DELIMITER = ","
FIELD_COUNT = 5

# Go template handed to `docker stats --format`; must match FIELD_DELIMITER/FIELD_COUNT
STATS_FORMAT = FIELD_DELIMITER.join(
    ["{{.Name}}", "{{.CPUPerc}}", "{{.MemUsage}}", "{{.NetIO}}", "{{.BlockIO}}"]
)


def parse_stats_line(line: str, captured_at: Optional[datetime] = None) -> ContainerRecord:
    fields = [f.strip() for f in line.strip().split(FIELD_DELIMITER)]
    if len(fields) != FIELD_COUNT:
        raise ParseError(f"expected {FIELD_COUNT} fields, got {len(fields)}")

    name, cpu, mem, net, block = fields
    if not name:
        raise ParseError("empty container name")

    mem_usage, mem_limit = parse_mem_pair(mem)
    net_in, net_out = parse_io_pair(net)
    block_read, block_write = parse_io_pair(block)

    return ContainerRecord(
        name=name,
        cpu_percent=parse_percent(cpu),
        mem_usage_bytes=mem_usage,
        mem_limit_bytes=mem_limit,
        net_in_bytes=net_in,
        net_out_bytes=net_out,
        block_read_bytes=block_read,
        block_write_bytes=block_write,
        captured_at=captured_at,
    )


def parse_stats_text(text: str, captured_at: Optional[datetime] = None) -> Snapshot:
    """Turn one capture into a Snapshot, or raise CycleFailure if nothing parsed."""
    if captured_at is None:
        captured_at = datetime.now(timezone.utc)

    records: List[ContainerRecord] = []
    skipped = 0

    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            records.append(parse_stats_line(line, captured_at))
        except ParseError as e:
            skipped += 1
            log.warning("Skipping stats line %d (%r): %s", lineno, line.strip(), e)

    if not records:
        if skipped:
            raise CycleFailure(f"none of {skipped} stats lines could be parsed")
        raise CycleFailure("stats command produced no output")

    log.debug("Parsed %d containers (%d lines skipped)", len(records), skipped)
    return Snapshot.from_records(records, captured_at)
