"""TimelineManager: the task-facing API over one SegmentIndex.

Callers (UI, task controller, persistence) go through this class to
create, edit and remove segments, and to ask duration questions. The
manager owns the index, allocates segment ids, and describes every
change it makes as a MutationResult.

Unknown ids are not errors. Updating or removing a segment that isn't
there does nothing and returns an empty MutationResult, and lookups
return None.

Alongside the index the manager keeps an id -> range map. Knowing a
segment's range lets id lookups and removals walk only the nodes that
can hold it, instead of searching the whole tree.

Not thread-safe: no operation takes a lock, and the index's counters
and bound rebuilds assume a single writer. Confine each manager to one
thread (or guard it with one lock per instance).
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable

from taskline_lite.domain.interval import Interval
from taskline_lite.domain.segment import Segment, interval_sum, sorted_by_start
from taskline_lite.domain.types import Duration, SegmentId, TaskId, Timestamp
from taskline_lite.index.config import IndexConfig
from taskline_lite.index.coverage import covered_duration
from taskline_lite.index.segment_index import SegmentIndex
from taskline_lite.timeline.events import NO_CHANGE, ChangeListener, MutationResult
from taskline_lite.timeline.ids import IdAllocator, MonotonicIdAllocator

log = logging.getLogger(__name__)


class TimelineManager:
    """Keeps track of the time segments tasks executed in.

    Args:
        segments: initial segments, e.g. from a persisted document.
            The index is built from scratch over them.
        config: subdivision limits for the index.
        id_allocator: strategy for fresh segment ids. Defaults to a
            MonotonicIdAllocator.
    """

    __slots__ = ("_index", "_ranges", "_max_id", "_allocator", "_listeners")

    def __init__(
        self,
        segments: Iterable[Segment] = (),
        config: IndexConfig | None = None,
        id_allocator: IdAllocator | None = None,
    ) -> None:
        self._index = SegmentIndex(config=config)
        self._ranges: dict[SegmentId, Interval] = {}
        self._max_id: SegmentId | None = None
        self._allocator: IdAllocator = id_allocator or MonotonicIdAllocator()
        self._listeners: list[ChangeListener] = []
        self._store(list(segments))

    # ---- notification ----------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, result: MutationResult) -> MutationResult:
        if not result.is_empty:
            for listener in list(self._listeners):
                listener(self, result)
        return result

    # ---- internal bookkeeping --------------------------------------------

    def _store(self, segments: list[Segment]) -> None:
        seen: set[SegmentId] = set()
        for segment in segments:
            if segment.id in self._ranges or segment.id in seen:
                raise ValueError(f"Duplicate segment id {segment.id}")
            seen.add(segment.id)
        if not segments:
            return
        self._index.insert_updating_bound(segments)
        for segment in segments:
            self._ranges[segment.id] = segment.range
            if self._max_id is None or segment.id > self._max_id:
                self._max_id = segment.id

    def _unstore(self, segment: Segment) -> None:
        self._index.remove_by_id_within(segment.id, segment.range)
        del self._ranges[segment.id]

    def _replace(self, old: Segment, new: Segment) -> None:
        self._index.remove_by_id_within(old.id, old.range)
        self._index.insert_updating_bound(new)
        self._ranges[new.id] = new.range

    def next_segment_id(self) -> SegmentId:
        """Allocate a fresh segment id."""
        return self._allocator(self._max_id)

    # ---- mutation --------------------------------------------------------

    def create_segment(self, task_id: TaskId, date_range: Interval) -> Segment:
        """Create a segment for *task_id* over *date_range* with a fresh id."""
        segment = Segment(id=self.next_segment_id(), task_id=task_id, range=date_range)
        self.add_segment(segment)
        return segment

    def add_segment(self, segment: Segment) -> MutationResult:
        """Add a pre-built segment. Raises ValueError on a duplicate id."""
        self._store([segment])
        return self._publish(MutationResult(added=(segment,)))

    def add_segments(self, segments: Iterable[Segment]) -> MutationResult:
        """Add several pre-built segments with at most one bound rebuild."""
        segments = list(segments)
        if not segments:
            return NO_CHANGE
        self._store(segments)
        log.debug("added %d segment(s)", len(segments))
        return self._publish(MutationResult(added=tuple(segments)))

    def set_segment_dates(
        self,
        segment_id: SegmentId,
        start: Timestamp | None = None,
        end: Timestamp | None = None,
    ) -> MutationResult:
        """Move the start and/or end of a segment.

        None leaves that side unchanged. Nothing happens (and nothing
        is reported) when both are None, the id is unknown, or the
        resulting range equals the current one. Raises ValueError if
        the new start would fall after the new end.
        """
        if start is None and end is None:
            return NO_CHANGE

        current = self.segment_by_id(segment_id)
        if current is None:
            return NO_CHANGE

        new_range = Interval(
            current.range.start if start is None else start,
            current.range.end if end is None else end,
        )
        if new_range == current.range:
            return NO_CHANGE

        updated = current.with_range(new_range)
        self._replace(current, updated)
        return self._publish(MutationResult(updated=(updated,)))

    def change_task(self, segment_id: SegmentId, task_id: TaskId) -> MutationResult:
        """Reassign a segment to another task. No-op if unknown or unchanged."""
        current = self.segment_by_id(segment_id)
        if current is None or current.task_id == task_id:
            return NO_CHANGE

        updated = current.with_task(task_id)
        self._replace(current, updated)
        return self._publish(MutationResult(updated=(updated,)))

    def remove_segment(self, segment_id: SegmentId) -> MutationResult:
        current = self.segment_by_id(segment_id)
        if current is None:
            return NO_CHANGE
        self._unstore(current)
        return self._publish(MutationResult(removed=(current,)))

    def remove_segments_for_task(self, task_id: TaskId) -> MutationResult:
        removed = self._index.remove_by_task_id(task_id)
        if not removed:
            return NO_CHANGE
        for segment in removed:
            del self._ranges[segment.id]
        return self._publish(MutationResult(removed=tuple(removed)))

    def remove_all(self) -> MutationResult:
        removed = self._index.all_segments()
        if not removed:
            return NO_CHANGE
        self._index = SegmentIndex(config=self._index.config)
        self._ranges.clear()
        return self._publish(MutationResult(removed=tuple(removed)))

    def join_connected_segments(self, task_id: TaskId) -> MutationResult:
        """Merge overlapping or touching segments of one task.

        Segments are walked in start order; each one that intersects
        the running merged segment (boundary contact counts) is folded
        into it and removed. The survivor of each chain keeps the id of
        its earliest-starting member.

        The result lists survivors whose range grew as updated and the
        absorbed segments as removed, in a single notification. When
        nothing connects, nothing changes and nothing is reported.
        """
        ordered = sorted_by_start(self.segments_for_task(task_id))
        if len(ordered) < 2:
            return NO_CHANGE

        merged: list[Segment] = [ordered[0]]
        absorbed: list[Segment] = []
        for segment in ordered[1:]:
            last = merged[-1]
            if last.range.intersects(segment.range):
                merged[-1] = last.with_range(last.range.union(segment.range))
                absorbed.append(segment)
            else:
                merged.append(segment)

        if not absorbed:
            return NO_CHANGE

        for segment in absorbed:
            self._unstore(segment)

        originals = {s.id: s for s in ordered}
        updated: list[Segment] = []
        for survivor in merged:
            before = originals[survivor.id]
            if survivor.range != before.range:
                self._replace(before, survivor)
                updated.append(survivor)

        log.debug(
            "joined segments of task %d: %d absorbed, %d survivor(s) grown",
            task_id, len(absorbed), len(updated),
        )
        return self._publish(
            MutationResult(removed=tuple(absorbed), updated=tuple(updated))
        )

    # ---- queries ---------------------------------------------------------

    @property
    def segments(self) -> list[Segment]:
        """Every stored segment, in no particular order."""
        return self._index.all_segments()

    @property
    def index(self) -> SegmentIndex:
        """The underlying index, for read-only queries."""
        return self._index

    def segment_by_id(self, segment_id: SegmentId) -> Segment | None:
        known = self._ranges.get(segment_id)
        if known is None:
            return None
        return self._index.first_at(known.start, lambda s: s.id == segment_id)

    def segments_for_task(self, task_id: TaskId) -> list[Segment]:
        return [s for s in self._index.all_segments() if s.task_id == task_id]

    def segments_in_range(self, query: Interval) -> list[Segment]:
        """Segments intersecting *query*, boundary contact included."""
        return self._index.all_intersecting(query)

    def segments_ending_before(self, timestamp: Timestamp) -> list[Segment]:
        return [s for s in self._index.all_segments() if s.range.end < timestamp]

    def segments_starting_after(self, timestamp: Timestamp) -> list[Segment]:
        return [s for s in self._index.all_segments() if s.range.start > timestamp]

    def segment_at(self, timestamp: Timestamp, reverse: bool = False) -> Segment | None:
        return self._index.segment_at(timestamp, reverse)

    def earliest_date(self) -> Timestamp | None:
        """Start of the earliest segment, or None when empty."""
        return self._index.earliest_start()

    def latest_date(self) -> Timestamp | None:
        """End of the latest segment, or None when empty."""
        return self._index.latest_end()

    def _coverage_index(self, task_id: TaskId | None) -> SegmentIndex:
        if task_id is None:
            # every segment matches, so the live index already is the
            # index over the matching set
            return self._index
        return SegmentIndex.from_segments(
            self.segments_for_task(task_id), self._index.config
        )

    def total_time(
        self, task_id: TaskId | None = None, with_overlap: bool = False
    ) -> Duration:
        """Total time of a task's segments (all segments if None).

        with_overlap=True sums raw durations, so time covered by two
        segments counts twice. with_overlap=False counts it once.
        """
        if with_overlap:
            if task_id is None:
                return interval_sum(self._index.all_segments())
            return interval_sum(self.segments_for_task(task_id))
        return covered_duration(self._coverage_index(task_id).root)

    def merged_coverage_ranges(self, task_id: TaskId | None = None) -> list[Interval]:
        return self._coverage_index(task_id).merged_coverage_ranges()

    def gaps_between_coverage(self, task_id: TaskId | None = None) -> list[Interval]:
        return self._coverage_index(task_id).gaps_between_coverage()

    # ---- dunder ----------------------------------------------------------

    def __len__(self) -> int:
        return len(self._ranges)

    def __contains__(self, segment_id: object) -> bool:
        return segment_id in self._ranges

    def __repr__(self) -> str:
        return f"TimelineManager(segments={len(self._ranges)})"
