"""
hostcheck.emit

AUTHOR: carter-vin

OUTPUT:
- JSON Lines log file
- one verdict entry per line
- append-only, size-based rotation

Design goals:
- Create log directory if missing
- Flush per write so tail/ingest can see updates immediately
- Provide explicit error surfaces (do not silently drop data)
"""

from __future__ import annotations

import json
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from hostcheck.model import Verdict, utc_now_iso


@dataclass(frozen=True)
class LogTargets:
    """
    Log file destination configuration.
    """

    log_path: Path
    max_bytes: int | None = None
    rotate_count: int = 3


def _rotation_path(log_path: Path, index: int) -> Path:
    """
    Build rotation path with numeric suffix
    """
    return log_path.with_name(f"{log_path.stem}.{index}{log_path.suffix}")


def maybe_rotate_log(targets: LogTargets) -> Optional[dict[str, Any]]:
    """
    Rotate log file when it reaches max size

    Returns rotation details when a rotation happened, else None.
    """
    if targets.max_bytes is None or targets.max_bytes <= 0:
        return None

    if targets.rotate_count < 1:
        return None

    if not targets.log_path.exists():
        return None

    prior_size = targets.log_path.stat().st_size
    if prior_size < targets.max_bytes:
        return None

    # Shift oldest first to keep renames deterministic
    for index in range(targets.rotate_count, 1, -1):
        src = _rotation_path(targets.log_path, index - 1)
        dst = _rotation_path(targets.log_path, index)
        if dst.exists():
            dst.unlink()
        if src.exists():
            src.rename(dst)

    first = _rotation_path(targets.log_path, 1)
    if first.exists():
        first.unlink()
    targets.log_path.rename(first)

    return {
        "log_path": str(targets.log_path),
        "rotated_to": str(first),
        "prior_size_bytes": prior_size,
    }


def append_jsonl_line(log_path: Path, line: str) -> None:
    """
    Append a single JSON string as one JSONL line.

    Failure semantics:
    - raises on IO errors; caller decides how to handle
    """
    log_path.parent.mkdir(parents=True, exist_ok=True)

    with log_path.open(mode="a", encoding="utf-8", newline="\n") as f:
        f.write(line)
        f.write("\n")
        f.flush()


def build_log_entry(
    verdict: Verdict,
    *,
    host: Optional[str] = None,
    logged_at: Optional[str] = None,
) -> str:
    """
    One log line: who, when, and the full verdict
    """
    payload = {
        "host": host or socket.gethostname(),
        "logged_at": logged_at or utc_now_iso(),
        "verdict": verdict.to_dict(),
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def write_log_entry(
    entry_json: str,
    targets: LogTargets,
    *,
    on_error: Optional[Callable[[Exception, Path], None]] = None,
) -> Optional[dict[str, Any]]:
    """
    Rotate if needed, then append entry_json

    Returns rotation details (or None) so the caller can log the rotation.
    """
    try:
        rotation = maybe_rotate_log(targets)
        append_jsonl_line(targets.log_path, entry_json)
    except Exception as e:
        # Callback lets the caller surface the error without coupling modules
        if on_error is not None:
            on_error(e, targets.log_path)
        raise
    return rotation
