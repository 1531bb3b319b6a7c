"""
Contract tests for the verdict log file
"""

import json
from pathlib import Path

import pytest

from hostcheck.emit import LogTargets, build_log_entry, write_log_entry
from hostcheck.evaluate import evaluate
from hostcheck.model import Snapshot
from hostcheck.policy import ThresholdPolicy


def test_log_rotation_creates_rotated_files(tmp_path: Path) -> None:
    """
    Log rotates when max bytes threshold is reached
    """
    log_path = tmp_path / "health.jsonl"
    log_path.write_text("x" * 200, encoding="utf-8")

    targets = LogTargets(log_path=log_path, max_bytes=100, rotate_count=2)

    rotation_info = write_log_entry("{}", targets)

    assert rotation_info is not None
    assert rotation_info["rotated_to"].endswith(".1.jsonl")
    assert rotation_info["prior_size_bytes"] == 200

    rotated = tmp_path / "health.1.jsonl"
    assert rotated.exists()
    assert rotated.read_text(encoding="utf-8") == "x" * 200
    assert not (tmp_path / "health.2.jsonl").exists()

    assert log_path.read_text(encoding="utf-8") == "{}\n"


def test_log_appends_without_rotation(tmp_path: Path) -> None:
    log_path = tmp_path / "nested" / "health.jsonl"
    targets = LogTargets(log_path=log_path)

    assert write_log_entry('{"a":1}', targets) is None
    assert write_log_entry('{"a":2}', targets) is None

    assert log_path.read_text(encoding="utf-8").splitlines() == ['{"a":1}', '{"a":2}']


def test_log_error_reaches_callback(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    targets = LogTargets(log_path=blocker / "health.jsonl")
    seen = []

    with pytest.raises(OSError):
        write_log_entry("{}", targets, on_error=lambda e, path: seen.append(path))

    assert seen == [targets.log_path]


def test_log_entry_shape() -> None:
    verdict = evaluate(Snapshot.from_values([("cpu", 70)]), ThresholdPolicy())

    entry = json.loads(
        build_log_entry(verdict, host="web-1", logged_at="2026-01-01T00:00:00+00:00")
    )

    assert entry["host"] == "web-1"
    assert entry["logged_at"] == "2026-01-01T00:00:00+00:00"
    assert entry["verdict"]["overall"] == "UNHEALTHY"
    assert entry["verdict"]["failing_metrics"] == ["cpu"]
