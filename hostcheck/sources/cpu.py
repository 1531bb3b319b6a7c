"""
hostcheck.sources.cpu
AUTHOR: carter-vin

CPU source
- Linux /proc/stat, sampled twice over a fixed window
- busy% = 100 - idle% over the window (idle includes iowait)
- stdlib only
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from hostcheck.errors import ParseError
from hostcheck.model import Metric, round_percent
from hostcheck.sources.base import read_proc_text

PROC_STAT = Path("/proc/stat")
DEFAULT_INTERVAL_S = 1.0

# user nice system idle iowait irq softirq steal
_IDLE_FIELDS = (3, 4)
_COUNTED_FIELDS = 8


@dataclass(frozen=True)
class CpuTimes:
    total: int
    idle: int


def parse_proc_stat(contents: str) -> CpuTimes:
    """
    Parse the aggregate "cpu" line of /proc/stat

    guest/guest_nice are already folded into user/nice by the kernel, so only
    the first eight fields count toward the total.
    """
    for line in contents.splitlines():
        parts = line.split()
        if not parts or parts[0] != "cpu":
            continue
        try:
            values = [int(v) for v in parts[1 : 1 + _COUNTED_FIELDS]]
        except ValueError as e:
            raise ParseError(f"non-numeric cpu times: {line!r}") from e
        if len(values) < 4:
            raise ParseError(f"truncated cpu line: {line!r}")
        idle = sum(values[i] for i in _IDLE_FIELDS if i < len(values))
        return CpuTimes(total=sum(values), idle=idle)

    raise ParseError("aggregate cpu line missing in /proc/stat")


def busy_percent(before: CpuTimes, after: CpuTimes) -> float:
    """
    Busy percentage between two readings

    An idle delta of 0 is a valid, fully busy window.
    """
    total_delta = after.total - before.total
    idle_delta = after.idle - before.idle

    if total_delta <= 0:
        raise ParseError(f"cpu time did not advance (delta={total_delta})")
    if idle_delta < 0 or idle_delta > total_delta:
        raise ParseError(f"inconsistent idle delta {idle_delta} of {total_delta}")

    idle_pct = idle_delta / total_delta * 100.0
    return round_percent(100.0 - idle_pct)


class CpuSource:
    """
    CPU busy percentage over a sampling window

    sleep is injectable so tests can advance the counters between reads.
    """

    name = "cpu"

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL_S,
        *,
        stat_path: Path = PROC_STAT,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval < 0:
            raise ValueError(f"cpu interval must be >= 0, got {interval}")
        self.interval = interval
        self.stat_path = stat_path
        self._sleep = sleep

    def sample(self) -> Metric:
        before = parse_proc_stat(read_proc_text(self.stat_path))
        self._sleep(self.interval)
        after = parse_proc_stat(read_proc_text(self.stat_path))
        return Metric(name=self.name, value=busy_percent(before, after))
