"""Synthetic segment workloads for profiling the index.

Workload shapes:
  - gapped:   1h segments separated by 30m gaps; every segment is its
              own coverage window (n windows, n - 1 gaps)
  - filled:   1h segments starting every 30m, each overlapping the
              next by half; one single coverage window
  - covered:  the gapped layout plus one long segment spanning it end
              to end (inset by a second on each side), so the sweep
              can hop across everything in a few steps
  - random:   uniformly scattered starts over the span of the gapped
              layout, durations between 5m and 3h

Segments are spread round-robin over num_tasks tasks. Everything comes
from a seeded random.Random so runs are reproducible.
"""
from __future__ import annotations

import random
from datetime import datetime, timezone

from taskline_lite.domain.interval import Interval
from taskline_lite.domain.segment import Segment

WORKLOADS = ("gapped", "filled", "covered", "random")

_HOUR = 3600.0
_BASE_TIME = datetime(2000, 1, 1, 1, 0, tzinfo=timezone.utc).timestamp()


class SegmentLoadGenerator:
    """Generate segment workloads for profiling and benchmarks."""

    __slots__ = ("_rng", "_num_segments", "_num_tasks", "_workload", "_base")

    def __init__(
        self,
        num_segments: int = 10_000,
        num_tasks: int = 1,
        workload: str = "gapped",
        seed: int = 42,
        base_time: float = _BASE_TIME,
    ) -> None:
        if num_segments < 0:
            raise ValueError(f"num_segments must be >= 0, got {num_segments}")
        if num_tasks < 1:
            raise ValueError(f"num_tasks must be >= 1, got {num_tasks}")
        if workload not in WORKLOADS:
            raise ValueError(
                f"Unknown workload: {workload}. Use one of {', '.join(WORKLOADS)}."
            )
        self._rng = random.Random(seed)
        self._num_segments = num_segments
        self._num_tasks = num_tasks
        self._workload = workload
        self._base = base_time

    @property
    def workload(self) -> str:
        return self._workload

    def _task_for(self, i: int) -> int:
        return i % self._num_tasks + 1

    def _gapped(self) -> list[Segment]:
        segments = []
        for i in range(self._num_segments):
            start = self._base + i * 1.5 * _HOUR
            segments.append(Segment(i + 1, self._task_for(i), Interval(start, start + _HOUR)))
        return segments

    def _filled(self) -> list[Segment]:
        segments = []
        for i in range(self._num_segments):
            start = self._base + i * 0.5 * _HOUR
            segments.append(Segment(i + 1, self._task_for(i), Interval(start, start + _HOUR)))
        return segments

    def _covered(self) -> list[Segment]:
        segments = self._gapped()
        if segments:
            end = segments[-1].range.end
            segments.append(Segment(
                self._num_segments + 1,
                self._task_for(self._num_segments),
                Interval(self._base + 1, end - 1),
            ))
        return segments

    def _random(self) -> list[Segment]:
        span = max(self._num_segments, 1) * 1.5 * _HOUR
        segments = []
        for i in range(self._num_segments):
            start = self._base + self._rng.uniform(0, span)
            duration = self._rng.uniform(300.0, 3 * _HOUR)
            segments.append(Segment(i + 1, self._task_for(i), Interval(start, start + duration)))
        return segments

    def generate(self) -> list[Segment]:
        """Generate the whole workload as a list (not an iterator)."""
        if self._workload == "gapped":
            return self._gapped()
        if self._workload == "filled":
            return self._filled()
        if self._workload == "covered":
            return self._covered()
        return self._random()

    def query_points(self, count: int) -> list[float]:
        """Random instants within the workload's span, for point queries."""
        span = max(self._num_segments, 1) * 1.5 * _HOUR
        return [self._base + self._rng.uniform(0, span) for _ in range(count)]
