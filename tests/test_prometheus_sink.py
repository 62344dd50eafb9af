"""Tests for the /metrics exposition sink."""

from datetime import datetime, timezone

import httpx
import pytest

from docker_metrics_exporter.errors import StartupError
from docker_metrics_exporter.metrics import (
    MEM_UNLIMITED,
    PROMETHEUS_METRICS,
    ContainerRecord,
    Snapshot,
)
from docker_metrics_exporter.sinks.prometheus import CONTENT_TYPE, PrometheusSink, escape_label_value
from docker_metrics_exporter.storage.snapshot_store import SnapshotStore

CAPTURED_AT = datetime(2026, 10, 17, 12, 0, 0, tzinfo=timezone.utc)


def _make_record(**overrides) -> ContainerRecord:
    defaults = dict(
        name="web-1",
        cpu_percent=2.5,
        mem_usage_bytes=10_000_000,
        mem_limit_bytes=100_000_000,
        net_in_bytes=1000,
        net_out_bytes=2000,
        block_read_bytes=0,
        block_write_bytes=0,
        captured_at=CAPTURED_AT,
    )
    defaults.update(overrides)
    return ContainerRecord(**defaults)


def _sample_lines(text: str):
    return [line for line in text.splitlines() if line and not line.startswith("#")]


def test_empty_snapshot_renders_headers_only():
    text = PrometheusSink().render(Snapshot.empty())
    lines = text.splitlines()

    assert _sample_lines(text) == []
    for metric, _, help_text in PROMETHEUS_METRICS:
        assert f"# HELP {metric} {help_text}" in lines
        assert f"# TYPE {metric} gauge" in lines
    assert len(lines) == 2 * len(PROMETHEUS_METRICS)


def test_renders_one_sample_per_metric_per_container():
    snap = Snapshot.from_records(
        [_make_record(), _make_record(name="api-1", cpu_percent=0.0)], CAPTURED_AT
    )
    text = PrometheusSink().render(snap)

    assert len(_sample_lines(text)) == 2 * len(PROMETHEUS_METRICS)
    assert 'docker_cpu_percent{name="web-1"} 2.5' in text
    assert 'docker_cpu_percent{name="api-1"} 0.0' in text
    assert 'docker_mem_usage_bytes{name="web-1"} 10000000' in text
    assert 'docker_mem_limit_bytes{name="web-1"} 100000000' in text
    assert 'docker_net_input_bytes{name="web-1"} 1000' in text
    assert 'docker_net_output_bytes{name="web-1"} 2000' in text
    assert 'docker_block_read_bytes{name="web-1"} 0' in text
    assert 'docker_block_write_bytes{name="web-1"} 0' in text


def test_samples_follow_their_type_line():
    snap = Snapshot.from_records([_make_record()], CAPTURED_AT)
    lines = PrometheusSink().render(snap).splitlines()

    idx = lines.index("# TYPE docker_mem_limit_bytes gauge")
    assert lines[idx + 1].startswith("docker_mem_limit_bytes{")


def test_unlimited_memory_renders_as_inf():
    snap = Snapshot.from_records([_make_record(mem_limit_bytes=MEM_UNLIMITED)], CAPTURED_AT)
    assert 'docker_mem_limit_bytes{name="web-1"} +Inf' in PrometheusSink().render(snap)


def test_label_values_are_escaped():
    assert escape_label_value('a"b\\c\nd') == 'a\\"b\\\\c\\nd'


def test_deliver_packages_a_200_response():
    response = PrometheusSink().deliver("x 1\n")
    assert response.status == 200
    assert response.content_type == CONTENT_TYPE
    assert response.body == b"x 1\n"


def test_scrape_over_http_reflects_latest_snapshot():
    store = SnapshotStore()
    sink = PrometheusSink(host="127.0.0.1", port=0)
    sink.start(store)
    try:
        url = f"http://127.0.0.1:{sink.port}"

        empty = httpx.get(f"{url}/metrics")
        assert empty.status_code == 200
        assert empty.headers["content-type"].startswith("text/plain; version=0.0.4")
        assert "# TYPE docker_cpu_percent gauge" in empty.text
        assert _sample_lines(empty.text) == []

        store.replace(Snapshot.from_records([_make_record()], CAPTURED_AT))
        full = httpx.get(f"{url}/metrics")
        assert 'docker_cpu_percent{name="web-1"} 2.5' in full.text

        assert httpx.get(f"{url}/health").text == "OK\n"
        assert httpx.get(f"{url}/nope").status_code == 404
    finally:
        sink.stop()


def test_port_in_use_is_startup_error():
    first = PrometheusSink(host="127.0.0.1", port=0)
    first.start(SnapshotStore())
    try:
        second = PrometheusSink(host="127.0.0.1", port=first.port)
        with pytest.raises(StartupError):
            second.start(SnapshotStore())
    finally:
        first.stop()


def test_describe_mentions_endpoint():
    assert "/metrics" in PrometheusSink(host="127.0.0.1", port=9187).describe()
