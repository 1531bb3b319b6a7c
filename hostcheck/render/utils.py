"""
hostcheck.render.utils
AUTHOR: carter-vin

Formatting helpers for renderers
"""

from __future__ import annotations

from hostcheck.model import MetricVerdict

_LABELS = {
    "cpu": "CPU",
    "memory": "Memory",
}


def metric_label(name: str) -> str:
    if name in _LABELS:
        return _LABELS[name]
    if name.startswith("disk:"):
        return f"Disk ({name[len('disk:'):]})"
    return name


def format_percent(value: float | None) -> str:
    if value is None:
        return "n/a"
    if float(value).is_integer():
        return f"{value:.0f}%"
    return f"{value:.1f}%"


def format_error(item: MetricVerdict) -> str:
    return f"{item.error_type}: {item.error_message}"


def format_gb(bytes_value: int | None) -> str:
    if bytes_value is None:
        return "n/a"
    gb = bytes_value / (1024 ** 3)
    if gb >= 10:
        return f"{gb:.0f} GB"
    return f"{gb:.1f} GB"


def format_load(value: float | None) -> str:
    if value is None:
        return "n/a"
    return f"{value:.2f}"


def format_uptime(seconds: float | None) -> str:
    if seconds is None:
        return "n/a"
    minutes = int(seconds) // 60
    days, minutes = divmod(minutes, 24 * 60)
    hours, minutes = divmod(minutes, 60)
    if days:
        return f"{days}d {hours}h {minutes}m"
    return f"{hours}h {minutes}m"
