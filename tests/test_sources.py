"""
Contract tests for cpu / memory / disk sources against fake OS files
"""

from pathlib import Path
from types import SimpleNamespace

import pytest

from hostcheck.errors import ParseError, SourceUnavailable
from hostcheck.model import round_percent
from hostcheck.sources import CpuSource, DiskSource, MemorySource, default_sources
from hostcheck.sources.cpu import CpuTimes, busy_percent, parse_proc_stat
from hostcheck.sources.disk import parse_mounts, resolve_mount


def _stat_line(user: int, system: int, idle: int, iowait: int = 0) -> str:
    return (
        f"cpu  {user} 0 {system} {idle} {iowait} 0 0 0 0 0\n"
        f"cpu0 {user} 0 {system} {idle} {iowait} 0 0 0 0 0\n"
        "intr 12345\n"
    )


def _cpu_source(tmp_path: Path, before: str, after: str) -> CpuSource:
    stat = tmp_path / "stat"
    stat.write_text(before, encoding="utf-8")

    def _advance(seconds: float) -> None:
        stat.write_text(after, encoding="utf-8")

    return CpuSource(1.0, stat_path=stat, sleep=_advance)


# -----------------------------
# rounding
# -----------------------------
@pytest.mark.parametrize(
    "raw,expected",
    [(59.4, 59.0), (59.5, 60.0), (60.49, 60.0), (0.5, 1.0), (-3.0, 0.0), (100.4, 100.0)],
)
def test_round_percent_half_away_from_zero(raw: float, expected: float) -> None:
    assert round_percent(raw) == expected


# -----------------------------
# cpu
# -----------------------------
def test_parse_proc_stat_counts_idle_and_iowait() -> None:
    times = parse_proc_stat(_stat_line(user=100, system=50, idle=800, iowait=50))

    assert times == CpuTimes(total=1000, idle=850)


def test_cpu_busy_is_hundred_minus_idle(tmp_path: Path) -> None:
    source = _cpu_source(
        tmp_path,
        _stat_line(user=0, system=0, idle=0),
        _stat_line(user=20, system=5, idle=75),
    )

    metric = source.sample()

    assert metric.name == "cpu"
    assert metric.value == 25.0


def test_cpu_zero_idle_is_fully_busy(tmp_path: Path) -> None:
    source = _cpu_source(
        tmp_path,
        _stat_line(user=10, system=10, idle=500),
        _stat_line(user=60, system=60, idle=500),
    )

    assert source.sample().value == 100.0


def test_cpu_counters_not_advancing_is_parse_error() -> None:
    same = CpuTimes(total=100, idle=50)

    with pytest.raises(ParseError, match="did not advance"):
        busy_percent(same, same)


def test_cpu_missing_aggregate_line_is_parse_error() -> None:
    with pytest.raises(ParseError, match="aggregate cpu line"):
        parse_proc_stat("cpu0 1 2 3 4\nintr 1\n")


def test_cpu_missing_file_is_unavailable(tmp_path: Path) -> None:
    source = CpuSource(0.0, stat_path=tmp_path / "nope", sleep=lambda _: None)

    with pytest.raises(SourceUnavailable, match="not found"):
        source.sample()


def test_cpu_negative_interval_rejected() -> None:
    with pytest.raises(ValueError):
        CpuSource(-1.0)


# -----------------------------
# memory
# -----------------------------
def _meminfo(tmp_path: Path, text: str) -> MemorySource:
    path = tmp_path / "meminfo"
    path.write_text(text, encoding="utf-8")
    return MemorySource(meminfo_path=path)


def test_memory_used_percent(tmp_path: Path) -> None:
    source = _meminfo(
        tmp_path,
        "MemTotal:       1000 kB\nMemFree:         100 kB\nMemAvailable:    355 kB\n",
    )

    metric = source.sample()

    # 645 / 1000 = 64.5 -> 65 (half away from zero)
    assert metric.name == "memory"
    assert metric.value == 65.0


def test_memory_falls_back_without_memavailable(tmp_path: Path) -> None:
    source = _meminfo(
        tmp_path,
        "MemTotal: 1000 kB\nMemFree: 200 kB\nBuffers: 100 kB\nCached: 300 kB\n",
    )

    assert source.sample().value == 40.0


def test_memory_zero_total_is_parse_error(tmp_path: Path) -> None:
    source = _meminfo(tmp_path, "MemTotal: 0 kB\nMemAvailable: 0 kB\n")

    with pytest.raises(ParseError, match="MemTotal is 0"):
        source.sample()


def test_memory_missing_total_is_parse_error(tmp_path: Path) -> None:
    source = _meminfo(tmp_path, "garbage\n")

    with pytest.raises(ParseError, match="MemTotal missing"):
        source.sample()


# -----------------------------
# disk
# -----------------------------
MOUNTS = "\n".join(
    [
        "overlay / overlay rw,relatime 0 0",
        "/dev/sda1 / ext4 rw,relatime 0 0",
        "tmpfs /run tmpfs rw,nosuid 0 0",
        "/dev/sr0 /media/cdrom iso9660 ro 0 0",
        "/dev/sdb1 /mnt/my\\040data xfs rw 0 0",
    ]
)


def _statvfs(blocks: int, bfree: int, bavail: int, frsize: int = 4096):
    def _fake(path: str):
        return SimpleNamespace(
            f_frsize=frsize,
            f_bsize=frsize,
            f_blocks=blocks,
            f_bfree=bfree,
            f_bavail=bavail,
        )

    return _fake


def _disk(tmp_path: Path, mount: str = "/", statvfs=None) -> DiskSource:
    path = tmp_path / "mounts"
    path.write_text(MOUNTS + "\n", encoding="utf-8")
    return DiskSource(mount, mounts_path=path, statvfs=statvfs or _statvfs(1000, 400, 300))


def test_resolve_mount_skips_pseudo_filesystems() -> None:
    entry = resolve_mount(parse_mounts(MOUNTS), "/")

    assert entry.device == "/dev/sda1"
    assert entry.fs_type == "ext4"


def test_parse_mounts_decodes_escaped_spaces() -> None:
    entries = parse_mounts(MOUNTS)

    assert entries[-1].mount_point == "/mnt/my data"


def test_disk_used_percent_like_df(tmp_path: Path) -> None:
    metric = _disk(tmp_path).sample()

    # used = 600 blocks, avail = 300 -> 66.67% -> 67
    assert metric.name == "disk:/"
    assert metric.value == 67.0


def test_disk_pseudo_only_mount_is_unavailable(tmp_path: Path) -> None:
    with pytest.raises(SourceUnavailable, match="/run not found"):
        _disk(tmp_path, "/run").sample()


def test_disk_cdrom_is_excluded(tmp_path: Path) -> None:
    with pytest.raises(SourceUnavailable):
        _disk(tmp_path, "/media/cdrom").sample()


def test_disk_statvfs_error_is_unavailable(tmp_path: Path) -> None:
    def _boom(path: str):
        raise PermissionError("denied")

    with pytest.raises(SourceUnavailable, match="statvfs"):
        _disk(tmp_path, statvfs=_boom).sample()


def test_disk_zero_size_is_parse_error(tmp_path: Path) -> None:
    with pytest.raises(ParseError, match="zero size"):
        _disk(tmp_path, statvfs=_statvfs(0, 0, 0)).sample()


def test_default_sources_order_and_names() -> None:
    sources = default_sources(cpu_interval=0.5, mounts=("/", "/var"))

    assert [source.name for source in sources] == ["cpu", "memory", "disk:/", "disk:/var"]
