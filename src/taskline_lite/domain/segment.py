"""Segment: a span of time during which a task was executed.

Segments are immutable values. The timeline never edits a stored
segment in place; it swaps in a new instance built with with_range()
or with_task(), so a segment handed out to a caller can't change
under it.

The module-level helpers operate on any iterable of segments, the
same way the manager and the index use them on query results.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

from taskline_lite.domain.interval import Interval, span
from taskline_lite.domain.types import Duration, SegmentId, TaskId, Timestamp


@dataclass(frozen=True, slots=True)
class Segment:
    """Identified, task-tagged interval."""
    id: SegmentId
    task_id: TaskId
    range: Interval

    @property
    def start(self) -> Timestamp:
        return self.range.start

    @property
    def end(self) -> Timestamp:
        return self.range.end

    @property
    def duration(self) -> Duration:
        return self.range.duration

    def with_range(self, new_range: Interval) -> Segment:
        return replace(self, range=new_range)

    def with_task(self, task_id: TaskId) -> Segment:
        return replace(self, task_id=task_id)


def earliest_start(segments: Iterable[Segment]) -> Timestamp | None:
    """Start of the earliest-starting segment, or None if empty."""
    return min((s.range.start for s in segments), default=None)


def latest_end(segments: Iterable[Segment]) -> Timestamp | None:
    """End of the latest-ending segment, or None if empty."""
    return max((s.range.end for s in segments), default=None)


def interval_sum(segments: Iterable[Segment]) -> Duration:
    """Plain sum of durations. Overlapping time is counted twice."""
    return sum((s.range.duration for s in segments), 0.0)


def total_range(segments: Iterable[Segment]) -> Interval | None:
    """Span from the earliest start to the latest end, or None if empty."""
    return span(s.range for s in segments)


def sorted_by_start(segments: Iterable[Segment]) -> list[Segment]:
    """Segments ordered by start time. Stable for equal starts."""
    return sorted(segments, key=lambda s: s.range.start)
