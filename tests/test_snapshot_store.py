"""Tests for the atomically replaced snapshot holder."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from docker_metrics_exporter.metrics import ContainerRecord, Snapshot
from docker_metrics_exporter.storage.snapshot_store import SnapshotStore

BASE_TIME = datetime(2026, 10, 17, tzinfo=timezone.utc)


def _make_record(**overrides) -> ContainerRecord:
    defaults = dict(
        name="web-1",
        cpu_percent=1.0,
        mem_usage_bytes=10,
        mem_limit_bytes=100,
        net_in_bytes=0,
        net_out_bytes=0,
        block_read_bytes=0,
        block_write_bytes=0,
        captured_at=BASE_TIME,
    )
    defaults.update(overrides)
    return ContainerRecord(**defaults)


def _cycle_snapshot(cycle: int, containers: int = 20) -> Snapshot:
    """Every field of every record carries the cycle number."""
    captured_at = BASE_TIME + timedelta(seconds=cycle)
    records = [
        _make_record(
            name=f"c-{i}",
            cpu_percent=float(cycle),
            mem_usage_bytes=cycle,
            mem_limit_bytes=cycle,
            net_in_bytes=cycle,
            net_out_bytes=cycle,
            block_read_bytes=cycle,
            block_write_bytes=cycle,
            captured_at=captured_at,
        )
        for i in range(containers)
    ]
    return Snapshot.from_records(records, captured_at)


def test_starts_empty():
    store = SnapshotStore()
    snap = store.read()
    assert snap.is_empty
    assert len(snap) == 0
    assert snap.captured_at is None
    assert store.generation == 0


def test_replace_then_read_returns_same_snapshot():
    store = SnapshotStore()
    snap = _cycle_snapshot(1)
    store.replace(snap)
    assert store.read() is snap
    assert store.generation == 1


def test_replace_supersedes_without_mutating_old():
    store = SnapshotStore()
    first = _cycle_snapshot(1, containers=3)
    store.replace(first)
    held = store.read()

    store.replace(_cycle_snapshot(2, containers=1))

    assert len(held) == 3
    assert all(r.mem_usage_bytes == 1 for r in held)
    assert len(store.read()) == 1


def test_replace_rejects_non_snapshots():
    store = SnapshotStore()
    with pytest.raises(TypeError):
        store.replace({"web-1": _make_record()})


def test_negative_fields_rejected():
    with pytest.raises(ValueError):
        _make_record(net_in_bytes=-1)


def test_concurrent_reads_never_see_mixed_cycles():
    store = SnapshotStore(_cycle_snapshot(0))
    stop = threading.Event()
    problems = []

    def writer():
        for cycle in range(1, 2000):
            store.replace(_cycle_snapshot(cycle))
        stop.set()

    def reader():
        while not stop.is_set():
            snap = store.read()
            cycles = {r.mem_usage_bytes for r in snap}
            stamps = {r.captured_at for r in snap}
            if len(snap) != 20 or len(cycles) != 1 or stamps != {snap.captured_at}:
                problems.append((len(snap), cycles))

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for t in readers:
        t.start()
    writer()
    for t in readers:
        t.join(timeout=10)

    assert problems == []
    assert store.read().get("c-0").mem_usage_bytes == 1999
