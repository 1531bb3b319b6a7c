"""
hostcheck.model
AUTHOR: carter-vin

Metric / snapshot / verdict types + deterministic serialization primitives.

Design goals:
- Immutable values passed explicitly (no shared mutable state between stages)
- Tri-state per metric slot: value OR error, never "0 on failure"
- Explicit structure (no accidental serialization via __dict__)
- Deterministic ordering (snapshot order is preserved end to end)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional

UNIT_PERCENT = "percent"

STATUS_OK = "OK"
STATUS_CRITICAL = "CRITICAL"
VALID_STATUS = {STATUS_OK, STATUS_CRITICAL}

HEALTHY = "HEALTHY"
UNHEALTHY = "UNHEALTHY"
VALID_OVERALL = {HEALTHY, UNHEALTHY}


def utc_now_iso() -> str:
    """
    Current time in ISO 8601 (UTC)
    """
    return datetime.now(timezone.utc).isoformat()


def round_percent(value: float) -> float:
    """
    Round a percentage to an integer, half away from zero, clamped to [0, 100]

    Every source goes through this so the 60% boundary compares the same way
    for cpu, memory and disk.
    """
    rounded = Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return float(min(Decimal(100), max(Decimal(0), rounded)))


@dataclass(frozen=True)
class Metric:
    """
    One named percentage reading
    - name: "cpu", "memory", "disk:/", ...
    - value: float in [0, 100]
    """

    name: str
    value: float
    unit: str = UNIT_PERCENT

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("metric name is empty")
        if not 0.0 <= self.value <= 100.0:
            raise ValueError(f"metric {self.name!r} value out of range: {self.value}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "unit": self.unit,
        }


@dataclass(frozen=True)
class SampleError:
    """
    Why a metric could not be measured
    """

    error_type: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"error_type": self.error_type, "message": self.message}


@dataclass(frozen=True)
class Reading:
    """
    One metric slot in a snapshot
    - ok: metric is set, error is None
    - failed: error is set, metric is None
    """

    name: str
    metric: Optional[Metric] = None
    error: Optional[SampleError] = None

    def __post_init__(self) -> None:
        if (self.metric is None) == (self.error is None):
            raise ValueError(f"reading {self.name!r} must carry exactly one of metric or error")

    @property
    def ok(self) -> bool:
        return self.metric is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "metric": self.metric.to_dict() if self.metric else None,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass(frozen=True)
class Snapshot:
    """
    Readings captured together in one sampling cycle

    - captured_at: UTC ISO 8601 wall-clock time
    - monotonic: sampler clock value, non-decreasing per Sampler instance
    - readings: ordered, unique names
    """

    captured_at: str
    monotonic: float
    readings: tuple[Reading, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Accept any iterable at construction but store a tuple
        object.__setattr__(self, "readings", tuple(self.readings))
        seen: set[str] = set()
        for reading in self.readings:
            if reading.name in seen:
                raise ValueError(f"duplicate metric name in snapshot: {reading.name}")
            seen.add(reading.name)

    @property
    def names(self) -> list[str]:
        return [reading.name for reading in self.readings]

    def get(self, name: str) -> Optional[Reading]:
        for reading in self.readings:
            if reading.name == name:
                return reading
        return None

    @classmethod
    def from_values(
        cls,
        values: Iterable[tuple[str, float]],
        *,
        captured_at: str = "1970-01-01T00:00:00+00:00",
        monotonic: float = 0.0,
    ) -> "Snapshot":
        """
        Build a snapshot of successful readings (fixtures, replays)
        """
        return cls(
            captured_at=captured_at,
            monotonic=monotonic,
            readings=tuple(
                Reading(name=name, metric=Metric(name=name, value=float(value)))
                for name, value in values
            ),
        )


@dataclass(frozen=True)
class MetricVerdict:
    """
    Per-metric classification
    - value is None when the reading failed
    - error_* carry the source failure so operators can tell
      "resource exhausted" from "could not measure"
    """

    name: str
    value: Optional[float]
    ceiling: float
    status: str
    unit: str = UNIT_PERCENT
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def failed_to_measure(self) -> bool:
        return self.error_type is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "unit": self.unit,
            "ceiling": self.ceiling,
            "status": self.status,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class Verdict:
    """
    Healthy/unhealthy classification of one snapshot

    Never mutated after the evaluator builds it.
    """

    overall: str
    per_metric: tuple[MetricVerdict, ...]
    failing_metrics: tuple[str, ...]
    captured_at: str

    @property
    def healthy(self) -> bool:
        return self.overall == HEALTHY

    def metric(self, name: str) -> Optional[MetricVerdict]:
        for item in self.per_metric:
            if item.name == name:
                return item
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall": self.overall,
            "captured_at": self.captured_at,
            # List keeps snapshot order through sort_keys serialization
            "per_metric": [item.to_dict() for item in self.per_metric],
            "failing_metrics": list(self.failing_metrics),
        }


def validate_verdict(verdict: Verdict) -> None:
    """
    Validate verdict structure + content

    Raises ValueError on invalid
    """
    if verdict.overall not in VALID_OVERALL:
        raise ValueError(f"overall must be: {sorted(VALID_OVERALL)}")

    names = [item.name for item in verdict.per_metric]
    if len(set(names)) != len(names):
        raise ValueError("per_metric names must be unique")

    for item in verdict.per_metric:
        if item.status not in VALID_STATUS:
            raise ValueError(f"{item.name}: status must be: {sorted(VALID_STATUS)}")

    expected_failing = tuple(item.name for item in verdict.per_metric if item.status != STATUS_OK)
    if verdict.failing_metrics != expected_failing:
        raise ValueError("failing_metrics does not match per_metric statuses")

    if (verdict.overall == HEALTHY) != (not verdict.failing_metrics):
        raise ValueError("overall disagrees with failing_metrics")


def verdict_to_json(verdict: Verdict) -> str:
    """
    Serialize a Verdict

    Rules:
    - sort_keys=True ensures stable key order
    - separators remove whitespace to avoid formatting drift
    """
    return json.dumps(
        verdict.to_dict(),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
