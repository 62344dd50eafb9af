"""Tests for the size / percent / pair token parsers."""

import pytest

from docker_metrics_exporter.collector.units import (
    UNIT_FACTORS,
    format_size,
    humanize_size,
    parse_io_pair,
    parse_mem_pair,
    parse_percent,
    parse_size,
)
from docker_metrics_exporter.errors import ParseError
from docker_metrics_exporter.metrics import MEM_UNLIMITED


def test_decimal_units_use_base_1000():
    assert parse_size("10MB") == 10_000_000
    assert parse_size("1kB") == 1000
    assert parse_size("1KB") == 1000
    assert parse_size("2.5GB") == 2_500_000_000
    assert parse_size("1TB") == 10 ** 12


def test_binary_units_use_base_1024():
    assert parse_size("1KiB") == 1024
    assert parse_size("12MiB") == 12 * 1024 ** 2
    assert parse_size("1.5GiB") == 1_610_612_736
    assert parse_size("1TiB") == 1024 ** 4


def test_plain_bytes_and_whitespace():
    assert parse_size("0B") == 0
    assert parse_size("126B") == 126
    assert parse_size("  512 B ") == 512


@pytest.mark.parametrize("token", [
    "10XB", "abcMB", "", "10", "-1MB", "1.2.3MB", "--", "10mb", "1" * 400 + "B", "99999999999TiB",
])
def test_bad_sizes_raise(token):
    with pytest.raises(ParseError):
        parse_size(token)


def test_parse_percent():
    assert parse_percent("45.6%") == 45.6
    assert parse_percent("0.00%") == 0.0
    assert parse_percent(" 250.10% ") == 250.1


@pytest.mark.parametrize("token", ["45.6", "abc%", "--", "%", "-3%", "nan%"])
def test_bad_percent_raises(token):
    with pytest.raises(ParseError):
        parse_percent(token)


def test_parse_io_pair():
    assert parse_io_pair("12MiB / 1GiB") == (12 * 1024 ** 2, 1024 ** 3)
    assert parse_io_pair("1kB / 2kB") == (1000, 2000)


@pytest.mark.parametrize("token", ["12MiB", "1B / 2B / 3B", "1B/2B", "-- / --"])
def test_bad_io_pair_raises(token):
    with pytest.raises(ParseError):
        parse_io_pair(token)


def test_mem_pair_accepts_unlimited_limit():
    assert parse_mem_pair("10MB / unlimited") == (10_000_000, MEM_UNLIMITED)
    assert parse_mem_pair("10MB / 100MB") == (10_000_000, 100_000_000)


def test_format_then_parse_is_exact_for_bytes():
    for n in (0, 1, 999, 123_456_789):
        assert parse_size(format_size(n, "B")) == n


def test_format_then_parse_within_rounding():
    cases = [(1536, "KiB"), (10_000_000, "MB"), (123_456_789, "MiB"), (7 * 1024 ** 3 + 5, "GiB")]
    for n, unit in cases:
        precision = 3
        reparsed = parse_size(format_size(n, unit, precision=precision))
        tolerance = UNIT_FACTORS[unit] * 10 ** -precision
        assert abs(reparsed - n) <= tolerance, (n, unit, reparsed)


def test_format_size_trims_zeros():
    assert format_size(1536, "KiB") == "1.5KiB"
    assert format_size(10_000_000, "MB") == "10MB"
    assert format_size(0, "kB") == "0kB"
    assert format_size(100_000, "kB", precision=0) == "100kB"


def test_format_size_unknown_unit():
    with pytest.raises(ValueError):
        format_size(10, "PB")


def test_humanize_size():
    assert humanize_size(512) == "512B"
    assert humanize_size(1536) == "1.5KiB"
    assert humanize_size(3 * 1024 ** 3) == "3GiB"
    assert humanize_size(MEM_UNLIMITED) == "unlimited"
