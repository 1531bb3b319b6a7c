"""
hostcheck.sources.base
AUTHOR: carter-vin

Source contract + shared OS read helper

A source reads exactly one OS facility and returns one Metric.
Failures are raised, not returned; the sampler turns them into data.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from hostcheck.errors import SourceUnavailable
from hostcheck.model import Metric


@runtime_checkable
class MetricSource(Protocol):
    name: str

    def sample(self) -> Metric:
        ...


def read_proc_text(path: Path) -> str:
    """
    Read a /proc style file

    Missing file, permission denied and other IO errors all mean the
    facility cannot be queried.
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise SourceUnavailable(f"{path} not found") from e
    except PermissionError as e:
        raise SourceUnavailable(f"permission denied reading {path}") from e
    except OSError as e:
        raise SourceUnavailable(f"cannot read {path}: {e}") from e
