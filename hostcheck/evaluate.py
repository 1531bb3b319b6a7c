"""
hostcheck.evaluate
AUTHOR: carter-vin

Health evaluation: snapshot + threshold policy -> verdict

Rules:
- OK iff value < ceiling (a value equal to the ceiling is CRITICAL)
- a reading that failed to measure is CRITICAL (fail-safe)
- HEALTHY iff every metric is OK
- pure: no state is kept between calls
"""

from __future__ import annotations

from typing import Iterable, Optional

from hostcheck.model import (
    HEALTHY,
    STATUS_CRITICAL,
    STATUS_OK,
    UNHEALTHY,
    MetricVerdict,
    Reading,
    Snapshot,
    Verdict,
    validate_verdict,
)
from hostcheck.policy import ThresholdPolicy
from hostcheck.sampler import Sampler
from hostcheck.sources.base import MetricSource


def _classify(reading: Reading, ceiling: float) -> MetricVerdict:
    if reading.metric is None:
        return MetricVerdict(
            name=reading.name,
            value=None,
            ceiling=ceiling,
            status=STATUS_CRITICAL,
            error_type=reading.error.error_type,
            error_message=reading.error.message,
        )

    status = STATUS_OK if reading.metric.value < ceiling else STATUS_CRITICAL
    return MetricVerdict(
        name=reading.name,
        value=reading.metric.value,
        ceiling=ceiling,
        status=status,
        unit=reading.metric.unit,
    )


def evaluate(snapshot: Snapshot, policy: ThresholdPolicy) -> Verdict:
    """
    Classify every reading of the snapshot

    Raises PolicyError before building anything if the policy is invalid.
    """
    policy.validate()

    per_metric = tuple(
        _classify(reading, policy.ceiling_for(reading.name))
        for reading in snapshot.readings
    )
    failing = tuple(item.name for item in per_metric if item.status != STATUS_OK)

    verdict = Verdict(
        overall=UNHEALTHY if failing else HEALTHY,
        per_metric=per_metric,
        failing_metrics=failing,
        captured_at=snapshot.captured_at,
    )

    validate_verdict(verdict)
    return verdict


def run_health_check(
    policy: ThresholdPolicy,
    sources: Iterable[MetricSource],
    *,
    sampler: Optional[Sampler] = None,
) -> Verdict:
    """
    Sample sources once and evaluate against policy

    The policy is checked before any OS facility is read.
    """
    policy.validate()
    if sampler is None:
        sampler = Sampler()
    return evaluate(sampler.capture(sources), policy)
