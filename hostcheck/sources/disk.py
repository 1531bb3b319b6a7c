"""
hostcheck.sources.disk
AUTHOR: carter-vin

Disk source
- resolves the mount point from /proc/mounts, skipping pseudo filesystems
- used% computed like df: used / (used + available to non-root)
- stdlib only
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from hostcheck.errors import ParseError, SourceUnavailable
from hostcheck.model import Metric, round_percent
from hostcheck.sources.base import read_proc_text

PROC_MOUNTS = Path("/proc/mounts")
DEFAULT_MOUNT = "/"

PSEUDO_FILESYSTEMS = frozenset(
    {
        "tmpfs",
        "devtmpfs",
        "overlay",
        "squashfs",
        "iso9660",
        "udf",
    }
)

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


@dataclass(frozen=True)
class MountEntry:
    device: str
    mount_point: str
    fs_type: str

    @property
    def is_pseudo(self) -> bool:
        return self.fs_type in PSEUDO_FILESYSTEMS or "cdrom" in self.device


def _unescape(field: str) -> str:
    # /proc/mounts encodes space, tab, newline and backslash as \ooo
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


def parse_mounts(contents: str) -> list[MountEntry]:
    entries: list[MountEntry] = []
    for line in contents.splitlines():
        parts = line.split()
        if len(parts) < 3:
            continue
        entries.append(
            MountEntry(
                device=_unescape(parts[0]),
                mount_point=_unescape(parts[1]),
                fs_type=parts[2],
            )
        )
    return entries


def resolve_mount(entries: list[MountEntry], mount_point: str) -> MountEntry:
    """
    Pick the entry backing mount_point

    Later entries shadow earlier ones on the same mount point, so the last
    real filesystem wins.
    """
    wanted = os.path.normpath(mount_point)
    candidates = [
        entry
        for entry in entries
        if os.path.normpath(entry.mount_point) == wanted and not entry.is_pseudo
    ]
    if not candidates:
        raise SourceUnavailable(f"mount point {mount_point} not found (pseudo filesystems excluded)")
    return candidates[-1]


def used_percent(stats: Any) -> float:
    """
    df-style used percentage from a statvfs result
    """
    frsize = stats.f_frsize or stats.f_bsize
    used = (stats.f_blocks - stats.f_bfree) * frsize
    avail = stats.f_bavail * frsize

    if used < 0 or avail < 0:
        raise ParseError(f"inconsistent block counts (used={used}, avail={avail})")
    if used + avail <= 0:
        raise ParseError("filesystem reports zero size")

    return round_percent(used / (used + avail) * 100.0)


class DiskSource:
    """
    Disk used percentage for one mount point
    """

    def __init__(
        self,
        mount: str = DEFAULT_MOUNT,
        *,
        mounts_path: Path = PROC_MOUNTS,
        statvfs: Callable[[str], Any] = os.statvfs,
    ) -> None:
        self.mount = mount
        self.mounts_path = mounts_path
        self._statvfs = statvfs
        self.name = f"disk:{mount}"

    def sample(self) -> Metric:
        entry = resolve_mount(parse_mounts(read_proc_text(self.mounts_path)), self.mount)

        try:
            stats = self._statvfs(entry.mount_point)
        except OSError as e:
            raise SourceUnavailable(f"statvfs({entry.mount_point}) failed: {e}") from e

        return Metric(name=self.name, value=used_percent(stats))
