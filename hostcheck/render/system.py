"""
hostcheck.render.system
AUTHOR: carter-vin

System information section printed after the verdict (check --system-info)
"""

from __future__ import annotations

import json

from hostcheck.render.utils import format_gb, format_load, format_percent, format_uptime
from hostcheck.sysinfo import SystemInfo

TITLE = "Detailed System Information:"
NON_ROOT_NOTE = "Note: running as non-root user. Some metrics might be limited."


def _section(name: str) -> list[str]:
    return ["", f"{name}:", "-" * (len(name) + 1)]


def _count(value: int | None) -> str:
    return "n/a" if value is None else str(value)


def render_system_text(info: SystemInfo) -> str:
    lines: list[str] = [TITLE, "=" * len(TITLE)]

    lines += _section("CPU Information")
    if info.cpu is None:
        lines.append("  unavailable")
    else:
        lines.append(f"  Model name:         {info.cpu.model_name or 'n/a'}")
        lines.append(f"  CPU(s):             {_count(info.cpu.logical_cpus)}")
        lines.append(f"  Core(s):            {_count(info.cpu.physical_cores)}")
        lines.append(f"  Thread(s) per core: {_count(info.cpu.threads_per_core)}")
        lines.append(f"  Socket(s):          {_count(info.cpu.sockets)}")

    lines += _section("Memory Information")
    if info.memory is None:
        lines.append("  unavailable")
    else:
        mem = info.memory
        lines.append(
            f"  Mem:  total {format_gb(mem.total_bytes)}, used {format_gb(mem.used_bytes)}, "
            f"available {format_gb(mem.available_bytes)}"
        )
        if mem.swap_total_bytes is not None:
            swap_used = None
            if mem.swap_free_bytes is not None:
                swap_used = mem.swap_total_bytes - mem.swap_free_bytes
            lines.append(f"  Swap: total {format_gb(mem.swap_total_bytes)}, used {format_gb(swap_used)}")

    lines += _section("Disk Information")
    if not info.filesystems:
        lines.append("  no /dev filesystems found")
    else:
        lines.append(f"  {'Filesystem':<20} {'Size':>8} {'Used':>8} {'Avail':>8} {'Use%':>5}  Mounted on")
        for fs in info.filesystems:
            lines.append(
                f"  {fs.device:<20} {format_gb(fs.size_bytes):>8} {format_gb(fs.used_bytes):>8} "
                f"{format_gb(fs.avail_bytes):>8} {format_percent(fs.used_percent):>5}  {fs.mount_point}"
            )

    lines += _section("System Load")
    loads = ", ".join(format_load(v) for v in (info.loadavg_1m, info.loadavg_5m, info.loadavg_15m))
    lines.append(f"  up {format_uptime(info.uptime_s)}, load average: {loads}")

    if info.running_as_root is False:
        lines.append("")
        lines.append(NON_ROOT_NOTE)

    return "\n".join(lines)


def render_system_info(info: SystemInfo, output_format: str = "text") -> str:
    """
    json format gets one JSON object; text and detailed share the text layout
    """
    if output_format == "json":
        payload = {"system_info": info.to_dict()}
        return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return render_system_text(info)
