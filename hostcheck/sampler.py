"""
hostcheck.sampler
AUTHOR: carter-vin

Run every source once and capture one Snapshot

Design goals:
- Sources run concurrently; the cpu window must not delay memory/disk reads
- Partial failure: a failing source becomes an error reading, the cycle goes on
- One shared deadline per capture so a stuck OS call cannot hang the cycle
- Sources run on daemon threads so an abandoned call cannot block process exit
- Snapshot.monotonic never goes backwards for one Sampler instance
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future, wait
from typing import Callable, Iterable

from hostcheck.errors import ParseError, SourceUnavailable
from hostcheck.model import Metric, Reading, SampleError, Snapshot, utc_now_iso
from hostcheck.sources.base import MetricSource

DEFAULT_TIMEOUT_S = 5.0


def _start_source(source: MetricSource) -> Future:
    """
    Run source.sample on a daemon thread, result delivered through a Future
    """
    future: Future = Future()
    future.set_running_or_notify_cancel()

    def _run() -> None:
        try:
            future.set_result(source.sample())
        except Exception as e:
            future.set_exception(e)

    thread = threading.Thread(
        target=_run,
        name=f"hostcheck-source-{source.name}",
        daemon=True,
    )
    thread.start()
    return future


def _failed(name: str, error: BaseException) -> Reading:
    return Reading(
        name=name,
        error=SampleError(error_type=type(error).__name__, message=str(error)),
    )


class Sampler:
    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_S,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if timeout <= 0:
            raise ValueError(f"sampler timeout must be > 0, got {timeout}")
        self.timeout = timeout
        self._clock = clock
        self._last_monotonic: float | None = None

    def _tick(self) -> float:
        now = self._clock()
        if self._last_monotonic is not None and now < self._last_monotonic:
            now = self._last_monotonic
        self._last_monotonic = now
        return now

    def _reading_for(self, source: MetricSource, future: Future, done: set) -> Reading:
        name = source.name

        if future not in done:
            return _failed(name, SourceUnavailable(f"{name} timed out after {self.timeout:g}s"))

        error = future.exception()
        if error is not None:
            # Anything a source raises is a failed measurement, not a crash
            return _failed(name, error)

        metric = future.result()
        if not isinstance(metric, Metric):
            return _failed(name, ParseError(f"{name} returned {type(metric).__name__}, not a Metric"))
        if metric.name != name:
            return _failed(name, ParseError(f"source {name} produced metric named {metric.name}"))

        return Reading(name=name, metric=metric)

    def capture(self, sources: Iterable[MetricSource]) -> Snapshot:
        """
        Sample all sources concurrently and join results in source order

        Raises ValueError if two sources share a name.
        """
        sources = list(sources)

        seen: set[str] = set()
        for source in sources:
            if source.name in seen:
                raise ValueError(f"duplicate source name: {source.name}")
            seen.add(source.name)

        captured_at = utc_now_iso()
        monotonic = self._tick()

        if not sources:
            return Snapshot(captured_at=captured_at, monotonic=monotonic, readings=())

        futures = [_start_source(source) for source in sources]
        # Stuck threads are abandoned; their late results are discarded
        done, _ = wait(futures, timeout=self.timeout)
        readings = tuple(
            self._reading_for(source, future, done)
            for source, future in zip(sources, futures)
        )

        return Snapshot(captured_at=captured_at, monotonic=monotonic, readings=readings)
