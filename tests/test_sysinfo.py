"""
Contract tests for the host information section (check --system-info)
"""

import json
from pathlib import Path
from types import SimpleNamespace

from hostcheck.render.system import NON_ROOT_NOTE, render_system_info
from hostcheck.sysinfo import (
    collect_filesystems,
    collect_system_info,
    parse_cpuinfo,
    parse_uptime,
)

GB = 1024 ** 3

CPUINFO = """\
processor\t: 0
model name\t: Example CPU @ 2.40GHz
physical id\t: 0
core id\t\t: 0

processor\t: 1
model name\t: Example CPU @ 2.40GHz
physical id\t: 0
core id\t\t: 0

processor\t: 2
model name\t: Example CPU @ 2.40GHz
physical id\t: 0
core id\t\t: 1

processor\t: 3
model name\t: Example CPU @ 2.40GHz
physical id\t: 0
core id\t\t: 1
"""

MEMINFO = """\
MemTotal:        8388608 kB
MemFree:         1048576 kB
MemAvailable:    4194304 kB
SwapTotal:       2097152 kB
SwapFree:        1048576 kB
"""

MOUNTS = """\
/dev/sda1 / ext4 rw,relatime 0 0
proc /proc proc rw 0 0
tmpfs /run tmpfs rw 0 0
/dev/sdb1 /var xfs rw 0 0
/dev/sr0 /media/cdrom iso9660 ro 0 0
/dev/loop0 /snap/core squashfs ro 0 0
"""


def _statvfs(path: str) -> SimpleNamespace:
    # 100 GB filesystem, 40 GB used, all free space available
    return SimpleNamespace(
        f_frsize=4096,
        f_bsize=4096,
        f_blocks=100 * GB // 4096,
        f_bfree=60 * GB // 4096,
        f_bavail=60 * GB // 4096,
    )


def _write_proc(tmp_path: Path) -> dict:
    paths = {}
    for name, text in [("cpuinfo", CPUINFO), ("meminfo", MEMINFO), ("mounts", MOUNTS), ("uptime", "93784.12 1000.00\n")]:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        paths[f"{name}_path"] = path
    return paths


def test_parse_cpuinfo_counts_cores_and_threads() -> None:
    cpu = parse_cpuinfo(CPUINFO)

    assert cpu.model_name == "Example CPU @ 2.40GHz"
    assert cpu.logical_cpus == 4
    assert cpu.physical_cores == 2
    assert cpu.threads_per_core == 2
    assert cpu.sockets == 1


def test_parse_cpuinfo_without_topology_fields() -> None:
    cpu = parse_cpuinfo("processor\t: 0\nprocessor\t: 1\n")

    assert cpu.logical_cpus == 2
    assert cpu.model_name is None
    assert cpu.physical_cores is None
    assert cpu.threads_per_core is None


def test_parse_uptime() -> None:
    assert parse_uptime("93784.12 1000.00\n") == 93784.12
    assert parse_uptime("") is None
    assert parse_uptime("garbage") is None


def test_collect_filesystems_keeps_only_dev_backed_real_filesystems() -> None:
    filesystems = collect_filesystems(MOUNTS, statvfs=_statvfs)

    assert [fs.mount_point for fs in filesystems] == ["/", "/var"]
    assert filesystems[0].size_bytes == 100 * GB
    assert filesystems[0].used_bytes == 40 * GB
    assert filesystems[0].used_percent == 40.0


def test_collect_filesystems_skips_statvfs_failures() -> None:
    def _statvfs_var_fails(path: str) -> SimpleNamespace:
        if path == "/var":
            raise PermissionError("denied")
        return _statvfs(path)

    filesystems = collect_filesystems(MOUNTS, statvfs=_statvfs_var_fails)

    assert [fs.mount_point for fs in filesystems] == ["/"]


def test_collect_system_info_from_fake_proc(tmp_path: Path) -> None:
    info = collect_system_info(
        **_write_proc(tmp_path),
        statvfs=_statvfs,
        getloadavg=lambda: (0.5, 0.25, 0.125),
        geteuid=lambda: 1000,
    )

    assert info.cpu.logical_cpus == 4
    assert info.memory.total_bytes == 8 * GB
    assert info.memory.used_bytes == 4 * GB
    assert info.memory.swap_total_bytes == 2 * GB
    assert len(info.filesystems) == 2
    assert info.loadavg_1m == 0.5
    assert info.uptime_s == 93784.12
    assert info.running_as_root is False


def test_missing_facilities_degrade_to_none(tmp_path: Path) -> None:
    def _no_loadavg():
        raise OSError("unavailable")

    missing = tmp_path / "missing"
    info = collect_system_info(
        cpuinfo_path=missing,
        meminfo_path=missing,
        mounts_path=missing,
        uptime_path=missing,
        getloadavg=_no_loadavg,
        geteuid=None,
    )

    assert info.cpu is None
    assert info.memory is None
    assert info.filesystems == ()
    assert info.loadavg_1m is None
    assert info.uptime_s is None
    assert info.running_as_root is None
    # still renders
    assert "unavailable" in render_system_info(info)


def test_text_rendering_has_sections_and_non_root_note(tmp_path: Path) -> None:
    info = collect_system_info(
        **_write_proc(tmp_path),
        statvfs=_statvfs,
        getloadavg=lambda: (0.5, 0.25, 0.125),
        geteuid=lambda: 1000,
    )

    out = render_system_info(info)

    for heading in ["CPU Information:", "Memory Information:", "Disk Information:", "System Load:"]:
        assert heading in out
    assert "Example CPU @ 2.40GHz" in out
    assert "/dev/sda1" in out
    assert "/dev/sr0" not in out
    assert "up 1d 2h 3m, load average: 0.50, 0.25, 0.12" in out
    assert out.endswith(NON_ROOT_NOTE)


def test_root_user_gets_no_note(tmp_path: Path) -> None:
    info = collect_system_info(**_write_proc(tmp_path), statvfs=_statvfs, geteuid=lambda: 0)

    assert NON_ROOT_NOTE not in render_system_info(info)


def test_json_rendering_is_one_object(tmp_path: Path) -> None:
    info = collect_system_info(**_write_proc(tmp_path), statvfs=_statvfs, geteuid=lambda: 0)

    payload = json.loads(render_system_info(info, "json"))

    assert payload["system_info"]["running_as_root"] is True
    assert payload["system_info"]["cpu"]["physical_cores"] == 2
    assert payload["system_info"]["filesystems"][1]["mount_point"] == "/var"
