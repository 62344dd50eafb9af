"""
Parsers for the human-readable tokens `docker stats` prints:
sizes ("1.23GB", "12MiB"), percentages ("45.6%") and "in / out" pairs.

Decimal suffixes scale by 1000, binary (Ki/Mi/...) suffixes by 1024.
Pure functions, no state.
"""

from __future__ import annotations

import math
import re
from typing import Dict, Tuple

from docker_metrics_exporter.errors import ParseError
from docker_metrics_exporter.metrics import MEM_UNLIMITED

UINT64_MAX = 2 ** 64 - 1

UNIT_FACTORS: Dict[str, int] = {
    "B": 1,
    "kB": 1000,
    "KB": 1000,
    "KiB": 1024,
    "MB": 1000 ** 2,
    "MiB": 1024 ** 2,
    "GB": 1000 ** 3,
    "GiB": 1024 ** 3,
    "TB": 1000 ** 4,
    "TiB": 1024 ** 4,
}

IO_SEPARATOR = " / "

# Unsigned decimal number followed by a unit, e.g. "1.5GiB" or "512 B"
_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?|\.\d+)\s*([A-Za-z]+)$")


def parse_size(token: str) -> int:
    """Convert a size token into a whole number of bytes."""
    match = _SIZE_RE.match(token.strip())
    if not match:
        raise ParseError(f"not a size: {token!r}")

    mantissa, unit = match.groups()
    factor = UNIT_FACTORS.get(unit)
    if factor is None:
        raise ParseError(f"unknown size unit {unit!r} in {token!r}")

    value = float(mantissa) * factor
    if not math.isfinite(value) or value > UINT64_MAX:
        raise ParseError(f"size out of range: {token!r}")

    num_bytes = int(round(value))
    if num_bytes > UINT64_MAX:
        raise ParseError(f"size out of range: {token!r}")
    return num_bytes


def parse_percent(token: str) -> float:
    """Strip the trailing % and return the number."""
    token = token.strip()
    if not token.endswith("%"):
        raise ParseError(f"not a percentage: {token!r}")

    try:
        value = float(token[:-1])
    except ValueError:
        raise ParseError(f"not a percentage: {token!r}") from None

    if math.isnan(value) or math.isinf(value) or value < 0:
        raise ParseError(f"percentage out of range: {token!r}")
    return value


def parse_io_pair(token: str) -> Tuple[int, int]:
    """Split "in / out" into two byte counts."""
    parts = token.strip().split(IO_SEPARATOR)
    if len(parts) != 2:
        raise ParseError(f"expected two sizes separated by {IO_SEPARATOR!r}, got {token!r}")
    return parse_size(parts[0]), parse_size(parts[1])


def parse_mem_pair(token: str) -> Tuple[int, int]:
    """Like parse_io_pair, but the limit side may say "unlimited"."""
    parts = token.strip().split(IO_SEPARATOR)
    if len(parts) != 2:
        raise ParseError(f"expected usage / limit, got {token!r}")

    usage = parse_size(parts[0])
    if parts[1].strip().lower() == "unlimited":
        return usage, MEM_UNLIMITED
    return usage, parse_size(parts[1])


def format_size(num_bytes: int, unit: str = "B", precision: int = 2) -> str:
    """Inverse of parse_size for a chosen unit. Trailing zeros are trimmed."""
    factor = UNIT_FACTORS.get(unit)
    if factor is None:
        raise ValueError(f"unknown size unit {unit!r}")
    if factor == 1:
        return f"{num_bytes}B"

    text = f"{num_bytes / factor:.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text}{unit}"


def humanize_size(num_bytes: int) -> str:
    """Pick the largest binary unit that keeps the number >= 1, like docker does."""
    if num_bytes == MEM_UNLIMITED:
        return "unlimited"
    for unit in ("TiB", "GiB", "MiB", "KiB"):
        if num_bytes >= UNIT_FACTORS[unit]:
            return format_size(num_bytes, unit)
    return format_size(num_bytes, "B")
