"""Interval: a closed time range [start, end] in Unix epoch seconds.

Zero-length intervals (start == end) are legal. They mark instants
("empty" segments) and every range algorithm in the index has to
tolerate them.

Two operations look like they should agree but deliberately do not:

    intersects()    inclusive, so [0, 10] and [10, 20] intersect
    intersection()  exclusive, so [0, 10] ∩ [10, 20] is None

join_connected_segments relies on the inclusive test (touching
segments get merged), while the coverage math relies on the exclusive
one (a shared boundary contributes no overlapping time).

union() is the convex span, not a set union: it bridges gaps. It is
used to grow bounds, never to merge coverage.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from taskline_lite.domain.types import Duration, Timestamp


@dataclass(frozen=True, slots=True)
class Interval:
    """Closed time interval [start, end].

    Raises ValueError on construction if start > end.
    """
    start: Timestamp
    end: Timestamp

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"start ({self.start}) must be <= end ({self.end})"
            )

    @classmethod
    def from_datetimes(cls, start: datetime, end: datetime) -> Interval:
        """Build an interval from two aware (or naive local) datetimes."""
        return cls(start.timestamp(), end.timestamp())

    @property
    def duration(self) -> Duration:
        """Length of the interval in seconds."""
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    @property
    def start_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.start, tz=timezone.utc)

    @property
    def end_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.end, tz=timezone.utc)

    def contains(self, timestamp: Timestamp) -> bool:
        """Whether the timestamp falls within this interval (inclusive)."""
        return self.start <= timestamp <= self.end

    def contains_range(self, other: Interval) -> bool:
        """Whether *other* lies completely inside this interval (inclusive)."""
        return self.start <= other.start and self.end >= other.end

    def intersects(self, other: Interval) -> bool:
        """Inclusive overlap test. Shared boundary points count."""
        return self.start <= other.end and other.start <= self.end

    def intersection(self, other: Interval) -> Interval | None:
        """Overlapping sub-range, or None.

        Ranges that only touch at a boundary have no intersection, even
        though intersects() is True for them.
        """
        if self.end <= other.start or other.end <= self.start:
            return None
        return Interval(max(self.start, other.start), min(self.end, other.end))

    def union(self, other: Interval) -> Interval:
        """Smallest interval containing both, gaps included."""
        return Interval(min(self.start, other.start), max(self.end, other.end))

    def split_at_middle(self) -> tuple[Interval, Interval]:
        """Two equal-duration halves that meet at the midpoint."""
        mid = self.start + (self.end - self.start) / 2
        return Interval(self.start, mid), Interval(mid, self.end)

    def clamp(self, other: Interval) -> Interval | None:
        """Inclusive clip of *other* to this interval.

        Unlike intersection(), a range touching this one at a boundary
        clips to the zero-length boundary point instead of None.
        """
        if not self.intersects(other):
            return None
        return Interval(max(self.start, other.start), min(self.end, other.end))


def span(intervals: Iterable[Interval]) -> Interval | None:
    """Union of all intervals, or None if the iterable is empty."""
    result: Interval | None = None
    for interval in intervals:
        result = interval if result is None else result.union(interval)
    return result
