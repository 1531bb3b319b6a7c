"""hostcheck.sources package exports."""

from __future__ import annotations

from hostcheck.sources.base import MetricSource
from hostcheck.sources.cpu import CpuSource
from hostcheck.sources.disk import DiskSource
from hostcheck.sources.memory import MemorySource


def default_sources(
    *,
    cpu_interval: float = 1.0,
    mounts: tuple[str, ...] = ("/",),
) -> list[MetricSource]:
    """
    Standard source set: cpu, memory, then one disk source per mount
    """
    sources: list[MetricSource] = [CpuSource(cpu_interval), MemorySource()]
    sources.extend(DiskSource(mount) for mount in mounts)
    return sources


__all__ = [
    "CpuSource",
    "DiskSource",
    "MemorySource",
    "MetricSource",
    "default_sources",
]
