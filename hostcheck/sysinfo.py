"""
hostcheck.sysinfo
AUTHOR: carter-vin

Host facts printed next to a verdict (check --system-info)
- cpu model and core / thread layout from /proc/cpuinfo
- memory and swap totals from /proc/meminfo
- /dev backed filesystems from /proc/mounts + statvfs
- load averages and uptime

Informational only: nothing here feeds the verdict. Every section degrades
to None when its facility is unavailable instead of failing the check.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from hostcheck.errors import HealthCheckError
from hostcheck.sources.base import read_proc_text
from hostcheck.sources.disk import PROC_MOUNTS, parse_mounts
from hostcheck.sources.disk import used_percent as disk_used_percent
from hostcheck.sources.memory import PROC_MEMINFO, parse_meminfo

PROC_CPUINFO = Path("/proc/cpuinfo")
PROC_UPTIME = Path("/proc/uptime")


@dataclass(frozen=True)
class CpuInfo:
    model_name: Optional[str]
    logical_cpus: Optional[int]
    physical_cores: Optional[int]
    sockets: Optional[int]
    threads_per_core: Optional[int]


@dataclass(frozen=True)
class MemoryInfo:
    total_bytes: int
    used_bytes: Optional[int]
    available_bytes: Optional[int]
    swap_total_bytes: Optional[int]
    swap_free_bytes: Optional[int]


@dataclass(frozen=True)
class FilesystemInfo:
    device: str
    mount_point: str
    fs_type: str
    size_bytes: int
    used_bytes: int
    avail_bytes: int
    used_percent: Optional[float]


@dataclass(frozen=True)
class SystemInfo:
    cpu: Optional[CpuInfo]
    memory: Optional[MemoryInfo]
    filesystems: tuple[FilesystemInfo, ...]
    loadavg_1m: Optional[float]
    loadavg_5m: Optional[float]
    loadavg_15m: Optional[float]
    uptime_s: Optional[float]
    running_as_root: Optional[bool]

    def to_dict(self) -> dict[str, Any]:
        return {
            "cpu": asdict(self.cpu) if self.cpu is not None else None,
            "memory": asdict(self.memory) if self.memory is not None else None,
            "filesystems": [asdict(fs) for fs in self.filesystems],
            "loadavg_1m": self.loadavg_1m,
            "loadavg_5m": self.loadavg_5m,
            "loadavg_15m": self.loadavg_15m,
            "uptime_s": self.uptime_s,
            "running_as_root": self.running_as_root,
        }


# -----------------------------
# PARSERS
# -----------------------------
def parse_cpuinfo(contents: str) -> CpuInfo:
    """
    Summarize /proc/cpuinfo the way lscpu does

    Physical cores are unique (physical id, core id) pairs; both fields are
    missing on some architectures, which leaves the layout fields None.
    """
    model_name: Optional[str] = None
    logical = 0
    cores: set[tuple[str, str]] = set()
    sockets: set[str] = set()

    physical_id = "0"
    for line in contents.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()

        if key == "processor":
            logical += 1
            physical_id = "0"
        elif key == "model name" and model_name is None:
            model_name = value
        elif key == "physical id":
            physical_id = value
            sockets.add(value)
        elif key == "core id":
            cores.add((physical_id, value))

    logical_cpus = logical or os.cpu_count()
    physical_cores = len(cores) or None

    threads_per_core = None
    if logical_cpus and physical_cores:
        threads_per_core = max(logical_cpus // physical_cores, 1)

    return CpuInfo(
        model_name=model_name,
        logical_cpus=logical_cpus,
        physical_cores=physical_cores,
        sockets=len(sockets) or None,
        threads_per_core=threads_per_core,
    )


def memory_info_from_meminfo(values: dict[str, int]) -> Optional[MemoryInfo]:
    total = values.get("MemTotal")
    if not total:
        return None

    available = values.get("MemAvailable")
    if available is None and "MemFree" in values:
        available = values["MemFree"] + values.get("Buffers", 0) + values.get("Cached", 0)

    return MemoryInfo(
        total_bytes=total,
        used_bytes=max(total - available, 0) if available is not None else None,
        available_bytes=available,
        swap_total_bytes=values.get("SwapTotal"),
        swap_free_bytes=values.get("SwapFree"),
    )


def parse_uptime(contents: str) -> Optional[float]:
    parts = contents.split()
    if not parts:
        return None
    try:
        return float(parts[0])
    except ValueError:
        return None


# -----------------------------
# COLLECTORS
# -----------------------------
def collect_filesystems(
    mounts_text: str,
    statvfs: Callable[[str], Any] = os.statvfs,
) -> tuple[FilesystemInfo, ...]:
    """
    /dev backed, non-pseudo filesystems (df -h | grep /dev/)

    A mount point listed twice keeps its last entry; statvfs failures skip
    that filesystem.
    """
    by_mount: dict[str, Any] = {}
    for entry in parse_mounts(mounts_text):
        if entry.device.startswith("/dev/") and not entry.is_pseudo:
            by_mount.pop(entry.mount_point, None)
            by_mount[entry.mount_point] = entry

    filesystems: list[FilesystemInfo] = []
    for entry in by_mount.values():
        try:
            stats = statvfs(entry.mount_point)
        except OSError:
            continue

        frsize = stats.f_frsize or stats.f_bsize
        try:
            percent: Optional[float] = disk_used_percent(stats)
        except HealthCheckError:
            percent = None

        filesystems.append(
            FilesystemInfo(
                device=entry.device,
                mount_point=entry.mount_point,
                fs_type=entry.fs_type,
                size_bytes=stats.f_blocks * frsize,
                used_bytes=(stats.f_blocks - stats.f_bfree) * frsize,
                avail_bytes=stats.f_bavail * frsize,
                used_percent=percent,
            )
        )
    return tuple(filesystems)


def _read_optional(path: Path) -> Optional[str]:
    try:
        return read_proc_text(path)
    except HealthCheckError:
        return None


def collect_system_info(
    *,
    cpuinfo_path: Path = PROC_CPUINFO,
    meminfo_path: Path = PROC_MEMINFO,
    mounts_path: Path = PROC_MOUNTS,
    uptime_path: Path = PROC_UPTIME,
    statvfs: Callable[[str], Any] = os.statvfs,
    getloadavg: Optional[Callable[[], tuple[float, float, float]]] = getattr(os, "getloadavg", None),
    geteuid: Optional[Callable[[], int]] = getattr(os, "geteuid", None),
) -> SystemInfo:
    cpuinfo_text = _read_optional(cpuinfo_path)
    meminfo_text = _read_optional(meminfo_path)
    mounts_text = _read_optional(mounts_path)
    uptime_text = _read_optional(uptime_path)

    loadavg_1m: Optional[float] = None
    loadavg_5m: Optional[float] = None
    loadavg_15m: Optional[float] = None

    # Load averages are unavailable on some platforms
    if getloadavg is not None:
        try:
            loadavg_1m, loadavg_5m, loadavg_15m = getloadavg()
        except OSError:
            pass

    return SystemInfo(
        cpu=parse_cpuinfo(cpuinfo_text) if cpuinfo_text is not None else None,
        memory=memory_info_from_meminfo(parse_meminfo(meminfo_text)) if meminfo_text is not None else None,
        filesystems=collect_filesystems(mounts_text, statvfs) if mounts_text is not None else (),
        loadavg_1m=loadavg_1m,
        loadavg_5m=loadavg_5m,
        loadavg_15m=loadavg_15m,
        uptime_s=parse_uptime(uptime_text) if uptime_text is not None else None,
        running_as_root=(geteuid() == 0) if geteuid is not None else None,
    )
