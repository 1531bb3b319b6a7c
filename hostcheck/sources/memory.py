"""
hostcheck.sources.memory
AUTHOR: carter-vin

Memory source
- Linux-first via /proc/meminfo
- used = MemTotal - MemAvailable (free(1) semantics)
- stdlib only
"""

from __future__ import annotations

from pathlib import Path

from hostcheck.errors import ParseError
from hostcheck.model import Metric, round_percent
from hostcheck.sources.base import read_proc_text

PROC_MEMINFO = Path("/proc/meminfo")


def parse_meminfo(contents: str) -> dict[str, int]:
    """
    Parse /proc/meminfo into a dict of values in bytes
    """
    values: dict[str, int] = {}
    for line in contents.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        key = parts[0].rstrip(":")
        try:
            value_kb = int(parts[1])
        except ValueError:
            continue
        values[key] = value_kb * 1024
    return values


def _available_bytes(values: dict[str, int]) -> int:
    if "MemAvailable" in values:
        return values["MemAvailable"]

    # Pre-3.14 kernels: approximate the way free(1) used to
    try:
        return values["MemFree"] + values.get("Buffers", 0) + values.get("Cached", 0)
    except KeyError as e:
        raise ParseError("MemAvailable and MemFree missing in /proc/meminfo") from e


def used_percent(values: dict[str, int]) -> float:
    total = values.get("MemTotal")
    if total is None:
        raise ParseError("MemTotal missing in /proc/meminfo")
    if total <= 0:
        raise ParseError("MemTotal is 0")

    used = max(total - _available_bytes(values), 0)
    return round_percent(used / total * 100.0)


class MemorySource:
    name = "memory"

    def __init__(self, *, meminfo_path: Path = PROC_MEMINFO) -> None:
        self.meminfo_path = meminfo_path

    def sample(self) -> Metric:
        values = parse_meminfo(read_proc_text(self.meminfo_path))
        return Metric(name=self.name, value=used_percent(values))
