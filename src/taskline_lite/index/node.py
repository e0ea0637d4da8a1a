"""Recursive node of the segment index.

Each node covers a bound interval on the time axis and holds:

    segments        local buffer, in append order
    children        either [] or exactly four nodes, left to right
    segment_count   segments stored at or below this node

Inserting appends to the local buffer until it holds
max_count_before_split segments. The next insert subdivides the node:
the bound is split at the middle twice, giving four quarter-width
children, and the segment descends into the first child whose bound
fully contains it. Segments that straddle a child boundary stay in the
local buffer, which is why a parent's buffer can end up larger than
the split threshold.

Structural invariant used by the nearest-neighbour queries: every
segment in a subtree lies inside that subtree's bound. So nothing
stored under child i starts before child i's bound, and nothing ends
after it. Searching children left-to-right for "closest start after t"
can stop at the first child that yields any candidate; the mirror
holds for "closest end before t" searching right-to-left.

Each node exclusively owns its children. There is no parent pointer;
every upward update (segment_count, squashing) happens while unwinding
the recursion.

Bound growth is not handled here. A segment that doesn't fit a node's
bound is a programming error at this level: see SegmentIndex for the
growth-aware entry point.
"""
from __future__ import annotations

import logging
from typing import Callable, TypeVar

from taskline_lite.domain.interval import Interval
from taskline_lite.domain.segment import Segment
from taskline_lite.domain.types import SegmentId, TaskId, Timestamp
from taskline_lite.index.config import DEFAULT_CONFIG, IndexConfig

log = logging.getLogger(__name__)

R = TypeVar("R")

SegmentVisitor = Callable[[Segment], bool]
SegmentPredicate = Callable[[Segment], bool]


class InvariantViolation(RuntimeError):
    """A segment could not be placed where the tree guarantees it fits.

    Indicates a bug in the index, not a condition callers can recover
    from. Library code never catches it.
    """


class SegmentNode:
    """One node of the four-way subdividing segment tree."""

    __slots__ = (
        "_bound", "_depth", "_config",
        "_segments", "_children", "_segment_count",
    )

    def __init__(
        self,
        bound: Interval,
        config: IndexConfig = DEFAULT_CONFIG,
        depth: int = 0,
    ) -> None:
        self._bound = bound
        self._depth = depth
        self._config = config
        self._segments: list[Segment] = []
        self._children: list[SegmentNode] = []
        self._segment_count = 0

    # ---- properties ------------------------------------------------------

    @property
    def bound(self) -> Interval:
        return self._bound

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def config(self) -> IndexConfig:
        return self._config

    @property
    def segments(self) -> list[Segment]:
        """Copy of the local buffer (not including descendants)."""
        return list(self._segments)

    @property
    def children(self) -> tuple[SegmentNode, ...]:
        return tuple(self._children)

    @property
    def segment_count(self) -> int:
        """Segments stored at or below this node."""
        return self._segment_count

    @property
    def is_leaf(self) -> bool:
        return not self._children

    # ---- insertion -------------------------------------------------------

    def insert_if_fits(self, segment: Segment) -> bool:
        """Store *segment* in this subtree if the bound contains it.

        Returns False, and changes nothing, if it doesn't fit.
        """
        if not self._bound.contains_range(segment.range):
            return False

        # every path below stores the segment somewhere in this subtree
        self._segment_count += 1

        if (
            len(self._segments) < self._config.max_count_before_split
            or self._depth >= self._config.max_depth
        ):
            self._segments.append(segment)
            return True

        self._subdivide()
        for child in self._children:
            if child.insert_if_fits(segment):
                return True

        self._segments.append(segment)
        return True

    def insert(self, segment: Segment) -> None:
        """Insert a segment that is known to fit.

        Raises InvariantViolation if it doesn't.
        """
        if not self.insert_if_fits(segment):
            log.critical(
                "segment %d %r does not fit node bound %r",
                segment.id, segment.range, self._bound,
            )
            raise InvariantViolation(
                f"Segment {segment.id} range {segment.range} does not fit "
                f"within node bound {self._bound}"
            )

    def reset(self, bound: Interval) -> None:
        """Drop every segment and child, and take a new bound."""
        self._bound = bound
        self._segments = []
        self._children = []
        self._segment_count = 0

    def _subdivide(self) -> None:
        if self._children:
            return
        left, right = self._bound.split_at_middle()
        ll, lr = left.split_at_middle()
        rl, rr = right.split_at_middle()
        self._children = [
            SegmentNode(quarter, self._config, self._depth + 1)
            for quarter in (ll, lr, rl, rr)
        ]

    def _squash_empty_children(self) -> None:
        if not self._children:
            return
        for child in self._children:
            if child._segment_count > 0:
                return
        log.debug("squashing empty children of node %r at depth %d", self._bound, self._depth)
        self._children = []

    # ---- removal ---------------------------------------------------------

    def remove_by_id(self, segment_id: SegmentId) -> Segment | None:
        """Remove the segment with *segment_id*. Returns it, or None."""
        for i, segment in enumerate(self._segments):
            if segment.id == segment_id:
                del self._segments[i]
                self._segment_count -= 1
                return segment

        for child in self._children:
            if child._segment_count == 0:
                continue
            removed = child.remove_by_id(segment_id)
            if removed is not None:
                self._segment_count -= 1
                self._squash_empty_children()
                return removed

        return None

    def remove_by_id_within(
        self, segment_id: SegmentId, within: Interval
    ) -> Segment | None:
        """Like remove_by_id, but only descends into children whose
        bound intersects *within*.

        Use when the caller knows the segment's current range.
        """
        if self.limit_range_within_bounds(within) is None:
            return None

        for i, segment in enumerate(self._segments):
            if segment.id == segment_id:
                del self._segments[i]
                self._segment_count -= 1
                return segment

        for child in self._children:
            if child._segment_count == 0 or not child._bound.intersects(within):
                continue
            removed = child.remove_by_id_within(segment_id, within)
            if removed is not None:
                self._segment_count -= 1
                self._squash_empty_children()
                return removed

        return None

    def remove_where(self, predicate: SegmentPredicate) -> list[Segment]:
        """Remove every segment matching *predicate*; return them."""
        removed: list[Segment] = []
        kept: list[Segment] = []
        for segment in self._segments:
            (removed if predicate(segment) else kept).append(segment)
        if removed:
            self._segments = kept
            self._segment_count -= len(removed)

        for child in self._children:
            if child._segment_count == 0:
                continue
            sub_removed = child.remove_where(predicate)
            self._segment_count -= len(sub_removed)
            removed.extend(sub_removed)

        if removed:
            self._squash_empty_children()
        return removed

    def remove_by_task_id(self, task_id: TaskId) -> list[Segment]:
        return self.remove_where(lambda s: s.task_id == task_id)

    # ---- whole-tree traversal --------------------------------------------

    def all_segments(self) -> list[Segment]:
        """Every segment in this subtree, depth-first, local buffer first."""
        out: list[Segment] = []
        self._append_segments(out)
        return out

    def _append_segments(self, out: list[Segment]) -> None:
        out.extend(self._segments)
        for child in self._children:
            child._append_segments(out)

    def iterate_all(self, visit: SegmentVisitor) -> bool:
        """Call *visit* on every segment, depth-first.

        *visit* returns True to continue. The first False stops the
        traversal in every enclosing frame. Returns False if stopped
        early, True after a complete traversal.
        """
        for segment in self._segments:
            if not visit(segment):
                return False
        for child in self._children:
            if not child.iterate_all(visit):
                return False
        return True

    def first_where(self, predicate: SegmentPredicate) -> Segment | None:
        found: Segment | None = None

        def _visit(segment: Segment) -> bool:
            nonlocal found
            if predicate(segment):
                found = segment
                return False
            return True

        self.iterate_all(_visit)
        return found

    def segment_by_id(self, segment_id: SegmentId) -> Segment | None:
        return self.first_where(lambda s: s.id == segment_id)

    def iterate_nodes_containing(
        self, timestamp: Timestamp, visit: Callable[[SegmentNode], None]
    ) -> None:
        """Call *visit* on this node and every descendant whose bound
        contains *timestamp*, parents before children."""
        if not self._bound.contains(timestamp):
            return
        visit(self)
        for child in self._children:
            child.iterate_nodes_containing(timestamp, visit)

    def maximum_depth(self) -> int:
        """Levels below (and including) this node that hold segments.

        An empty node has depth 0.
        """
        if self._segment_count == 0:
            return 0
        return 1 + max((c.maximum_depth() for c in self._children), default=0)

    # ---- point and range queries -----------------------------------------

    def limit_range_within_bounds(self, query: Interval) -> Interval | None:
        """Clip *query* to this node's bound (inclusive).

        None if the two don't intersect at all.
        """
        return self._bound.clamp(query)

    def segment_at(self, timestamp: Timestamp, reverse: bool = False) -> Segment | None:
        """A segment whose range contains *timestamp*, or None.

        Forward: local buffer in append order, then children left to
        right, so the earliest-stored match wins. Reverse walks the
        exact mirror (children right to left, then the local buffer
        backwards), so the most recently stored match wins.
        """
        if self._segment_count == 0:
            return None

        if reverse:
            for child in reversed(self._children):
                if child._bound.contains(timestamp):
                    found = child.segment_at(timestamp, reverse=True)
                    if found is not None:
                        return found
            for segment in reversed(self._segments):
                if segment.range.contains(timestamp):
                    return segment
            return None

        for segment in self._segments:
            if segment.range.contains(timestamp):
                return segment
        for child in self._children:
            if child._bound.contains(timestamp):
                found = child.segment_at(timestamp)
                if found is not None:
                    return found
        return None

    def first_at(
        self, timestamp: Timestamp, predicate: SegmentPredicate
    ) -> Segment | None:
        """First segment containing *timestamp* that satisfies *predicate*."""
        for segment in self._segments:
            if segment.range.contains(timestamp) and predicate(segment):
                return segment
        for child in self._children:
            if child._segment_count and child._bound.contains(timestamp):
                found = child.first_at(timestamp, predicate)
                if found is not None:
                    return found
        return None

    def count_intersecting(self, query: Interval) -> int:
        """Number of segments whose range intersects *query* (inclusive)."""
        effective = self.limit_range_within_bounds(query)
        if effective is None or self._segment_count == 0:
            return 0

        count = 0
        for segment in self._segments:
            if segment.range.intersects(effective):
                count += 1
        for child in self._children:
            if child._segment_count and child._bound.intersects(effective):
                count += child.count_intersecting(effective)
        return count

    def all_intersecting(self, query: Interval) -> list[Segment]:
        """Segments whose range intersects *query*. Not ordered."""
        out: list[Segment] = []
        self.query(query, out.append)
        return out

    def query(self, query: Interval, visit: Callable[[Segment], object]) -> None:
        """Call *visit* for every segment intersecting *query*."""
        effective = self.limit_range_within_bounds(query)
        if effective is None or self._segment_count == 0:
            return

        for segment in self._segments:
            if segment.range.intersects(effective):
                visit(segment)
        for child in self._children:
            if child._segment_count and child._bound.intersects(effective):
                child.query(effective, visit)

    def map_segments(self, query: Interval, fn: Callable[[Segment], R]) -> list[R]:
        values: list[R] = []
        self.query(query, lambda s: values.append(fn(s)))
        return values

    # ---- nearest-neighbour queries ---------------------------------------

    def closest_starting_after(
        self, timestamp: Timestamp, non_empty_only: bool = False
    ) -> Segment | None:
        """Segment with the smallest start among those starting at or
        after *timestamp*.

        Children are searched left to right and the search stops at the
        first child subtree that yields a candidate: nothing further
        right can start earlier (see module docstring).
        """
        # A node whose bound ends before the timestamp can't hold a
        # segment starting after it. Nodes starting after it still can.
        if timestamp > self._bound.end or self._segment_count == 0:
            return None

        closest: Segment | None = None

        for child in self._children:
            if child._segment_count == 0:
                continue
            found = child.closest_starting_after(timestamp, non_empty_only)
            if found is not None:
                closest = found
                break

        for segment in self._segments:
            r = segment.range
            if non_empty_only and r.start == r.end:
                continue
            if r.start < timestamp:
                continue
            if closest is None or r.start < closest.range.start:
                closest = segment

        return closest

    def closest_ending_before(
        self, timestamp: Timestamp, non_empty_only: bool = False
    ) -> Segment | None:
        """Segment with the largest end among those ending at or before
        *timestamp*. Mirror of closest_starting_after: children are
        searched right to left with the same early stop."""
        if timestamp < self._bound.start or self._segment_count == 0:
            return None

        closest: Segment | None = None

        for child in reversed(self._children):
            if child._segment_count == 0:
                continue
            found = child.closest_ending_before(timestamp, non_empty_only)
            if found is not None:
                closest = found
                break

        for segment in self._segments:
            r = segment.range
            if non_empty_only and r.start == r.end:
                continue
            if r.end > timestamp:
                continue
            if closest is None or r.end > closest.range.end:
                closest = segment

        return closest

    def longest_segment_covering(self, timestamp: Timestamp) -> Segment | None:
        """Among segments containing *timestamp* that also end strictly
        after it, the one reaching farthest right.

        Children are probed at the best end found so far rather than at
        *timestamp*: anything that beats the current best must also
        cover that point, so children that don't contain it are skipped.
        """
        return self._longest_covering(timestamp, None)

    def _longest_covering(
        self, timestamp: Timestamp, best: Segment | None
    ) -> Segment | None:
        for segment in self._segments:
            r = segment.range
            if r.start <= timestamp < r.end:
                if best is None or r.end > best.range.end:
                    best = segment

        for child in self._children:
            probe = best.range.end if best is not None else timestamp
            if (
                child._segment_count == 0
                or child._bound.start > timestamp
                or not child._bound.contains(probe)
            ):
                continue
            best = child._longest_covering(timestamp, best)

        return best

    def earliest_start(self) -> Timestamp | None:
        """Start of the earliest-starting segment in this subtree."""
        found = self.closest_starting_after(self._bound.start)
        return found.range.start if found is not None else None

    def latest_end(self) -> Timestamp | None:
        """End of the latest-ending segment in this subtree."""
        found = self.closest_ending_before(self._bound.end)
        return found.range.end if found is not None else None

    # ---- dunder ----------------------------------------------------------

    def __len__(self) -> int:
        return self._segment_count

    def __repr__(self) -> str:
        return (
            f"SegmentNode(bound=[{self._bound.start}, {self._bound.end}], "
            f"depth={self._depth}, local={len(self._segments)}, "
            f"count={self._segment_count}, children={len(self._children)})"
        )
