"""SegmentIndex: the owning handle around a tree of SegmentNodes.

The root node has a fixed bound. Inserting a segment that falls
outside it means the bound has to grow, and because every node's
children are fixed quarter-splits of its bound, growing the root
invalidates the whole subdivision. The only correct move is a rebuild:

    1. collect every stored segment
    2. new bound = old bound ∪ span(incoming)   (just the incoming span
       if the tree was empty)
    3. clear the root, take the new bound, reinsert everything

That makes insert_updating_bound O(n) whenever a segment lands outside
the current bound. The new bound is the exact span, with no padding,
so every insert past the right edge pays for a rebuild. Edits inside
the existing span never do, and a batch insert rebuilds at most once
for the whole batch. Call compact_bound() after heavy removal to
shrink the bound back.

insert() is the raw path and never grows anything: a segment outside
the bound raises InvariantViolation. Callers that can't guarantee the
fit (the timeline manager, bulk loads) go through
insert_updating_bound().

Not thread-safe. Confine an index to one thread.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator, TypeVar

from taskline_lite.domain.interval import Interval
from taskline_lite.domain.segment import Segment, sorted_by_start, total_range
from taskline_lite.domain.types import SegmentId, TaskId, Timestamp
from taskline_lite.index import coverage
from taskline_lite.index.config import DEFAULT_CONFIG, IndexConfig
from taskline_lite.index.node import (
    InvariantViolation,
    SegmentNode,
    SegmentPredicate,
    SegmentVisitor,
)

log = logging.getLogger(__name__)

R = TypeVar("R")


class SegmentIndex:
    """Spatial index of segments over the time axis.

    Args:
        bound: initial root bound. Defaults to the zero-length interval
            at 0.0, which the first growth-aware insert replaces
            entirely.
        config: subdivision limits for every node.
    """

    __slots__ = ("_root", "_config")

    def __init__(
        self,
        bound: Interval | None = None,
        config: IndexConfig | None = None,
    ) -> None:
        self._config = config or DEFAULT_CONFIG
        self._root = SegmentNode(bound or Interval(0.0, 0.0), self._config)

    @classmethod
    def from_segments(
        cls,
        segments: Iterable[Segment],
        config: IndexConfig | None = None,
    ) -> SegmentIndex:
        """Build an index whose bound is exactly the span of *segments*."""
        segments = list(segments)
        index = cls(total_range(segments), config)
        for segment in segments:
            index.insert(segment)
        return index

    # ---- properties ------------------------------------------------------

    @property
    def bound(self) -> Interval:
        return self._root.bound

    @property
    def config(self) -> IndexConfig:
        return self._config

    @property
    def root(self) -> SegmentNode:
        return self._root

    @property
    def segment_count(self) -> int:
        return self._root.segment_count

    # ---- mutation --------------------------------------------------------

    def insert(self, segment: Segment) -> None:
        """Raw insert. Raises InvariantViolation if outside the bound."""
        self._root.insert(segment)

    def insert_updating_bound(self, segments: Segment | Iterable[Segment]) -> None:
        """Insert one or more segments, growing the bound if needed."""
        if isinstance(segments, Segment):
            segments = [segments]
        else:
            segments = list(segments)

        incoming = total_range(segments)
        if incoming is None:
            return

        if self._root.bound.contains_range(incoming):
            for segment in segments:
                self._root.insert(segment)
            return

        existing = self._root.all_segments()
        old_bound = self._root.bound
        new_bound = incoming.union(old_bound) if existing else incoming
        log.debug(
            "growing index bound %r -> %r, rebuilding %d segment(s)",
            old_bound, new_bound, len(existing) + len(segments),
        )
        self._rebuild(new_bound, existing + segments)

    def compact_bound(self) -> None:
        """Shrink the bound to the tightest span of stored segments.

        On an empty index the bound collapses to a zero-length interval
        at its current start.
        """
        existing = self._root.all_segments()
        tight = total_range(existing)
        if tight is None:
            tight = Interval(self._root.bound.start, self._root.bound.start)
        log.debug("compacting index bound %r -> %r", self._root.bound, tight)
        self._rebuild(tight, existing)

    def _rebuild(self, bound: Interval, segments: list[Segment]) -> None:
        self._root.reset(bound)
        for segment in segments:
            if not self._root.insert_if_fits(segment):
                log.critical(
                    "segment %d %r does not fit rebuilt bound %r",
                    segment.id, segment.range, bound,
                )
                raise InvariantViolation(
                    f"Segment {segment.id} does not fit rebuilt bound {bound}"
                )

    def clear(self) -> None:
        """Remove every segment. The bound is kept."""
        self._root.reset(self._root.bound)

    def remove_by_id(self, segment_id: SegmentId) -> Segment | None:
        return self._root.remove_by_id(segment_id)

    def remove_by_id_within(
        self, segment_id: SegmentId, within: Interval
    ) -> Segment | None:
        return self._root.remove_by_id_within(segment_id, within)

    def remove_where(self, predicate: SegmentPredicate) -> list[Segment]:
        return self._root.remove_where(predicate)

    def remove_by_task_id(self, task_id: TaskId) -> list[Segment]:
        return self._root.remove_by_task_id(task_id)

    # ---- queries ---------------------------------------------------------

    def all_segments(self) -> list[Segment]:
        return self._root.all_segments()

    def sorted_segments(self) -> list[Segment]:
        """All segments ordered by start time."""
        return sorted_by_start(self._root.all_segments())

    def segment_by_id(self, segment_id: SegmentId) -> Segment | None:
        return self._root.segment_by_id(segment_id)

    def first_where(self, predicate: SegmentPredicate) -> Segment | None:
        return self._root.first_where(predicate)

    def first_at(
        self, timestamp: Timestamp, predicate: SegmentPredicate
    ) -> Segment | None:
        return self._root.first_at(timestamp, predicate)

    def segment_at(self, timestamp: Timestamp, reverse: bool = False) -> Segment | None:
        return self._root.segment_at(timestamp, reverse)

    def count_intersecting(self, query: Interval) -> int:
        return self._root.count_intersecting(query)

    def all_intersecting(self, query: Interval) -> list[Segment]:
        return self._root.all_intersecting(query)

    def query(self, query: Interval, visit: Callable[[Segment], object]) -> None:
        self._root.query(query, visit)

    def map_segments(self, query: Interval, fn: Callable[[Segment], R]) -> list[R]:
        return self._root.map_segments(query, fn)

    def iterate_all(self, visit: SegmentVisitor) -> bool:
        return self._root.iterate_all(visit)

    def iterate_nodes_containing(
        self, timestamp: Timestamp, visit: Callable[[SegmentNode], None]
    ) -> None:
        self._root.iterate_nodes_containing(timestamp, visit)

    def limit_range_within_bounds(self, query: Interval) -> Interval | None:
        return self._root.limit_range_within_bounds(query)

    def closest_starting_after(
        self, timestamp: Timestamp, non_empty_only: bool = False
    ) -> Segment | None:
        return self._root.closest_starting_after(timestamp, non_empty_only)

    def closest_ending_before(
        self, timestamp: Timestamp, non_empty_only: bool = False
    ) -> Segment | None:
        return self._root.closest_ending_before(timestamp, non_empty_only)

    def longest_segment_covering(self, timestamp: Timestamp) -> Segment | None:
        return self._root.longest_segment_covering(timestamp)

    def earliest_start(self) -> Timestamp | None:
        return self._root.earliest_start()

    def latest_end(self) -> Timestamp | None:
        return self._root.latest_end()

    def maximum_depth(self) -> int:
        return self._root.maximum_depth()

    def merged_coverage_ranges(self) -> list[Interval]:
        return coverage.merged_coverage_ranges(self._root)

    def gaps_between_coverage(self) -> list[Interval]:
        return coverage.gaps_between_coverage(self._root)

    # ---- dunder ----------------------------------------------------------

    def __len__(self) -> int:
        return self._root.segment_count

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._root.all_segments())

    def __contains__(self, segment_id: object) -> bool:
        if not isinstance(segment_id, int):
            return False
        return self._root.segment_by_id(segment_id) is not None

    def __repr__(self) -> str:
        return (
            f"SegmentIndex(bound=[{self.bound.start}, {self.bound.end}], "
            f"segments={self.segment_count}, depth={self.maximum_depth()})"
        )
