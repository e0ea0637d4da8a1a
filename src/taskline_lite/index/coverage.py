"""Merged coverage and gaps, computed by hopping through the tree.

The textbook way to merge overlapping intervals is sort-then-sweep:
O(n log n) for the sort plus a linear pass. The tree already knows
where everything is, so we can sweep without sorting:

  1.  Find the leftmost non-empty segment with closest_starting_after.
      Its start opens a coverage window.
  2.  Hop: ask for the segment covering the window's current end that
      reaches farthest right (longest_segment_covering). Extend the
      window to its end. Repeat until nothing covers the end.
  3.  Record the window, then jump to the next segment starting at or
      after the window end and go back to step 2.

Each hop is a root-to-leaf walk, so the whole sweep is roughly
O(hops x depth). When one long segment spans most of the timeline
the sweep takes a handful of hops regardless of how many segments
sit underneath it.

Zero-length segments are skipped: they cover no time and can't extend
a window (longest_segment_covering wants end > point).

For example (time runs left to right, one segment per line):

    - [===]- - - - - - - - - - -
    - - [==] - - - - - [=====] -
    - - - - - -[===] - - - - - -

merges to

    - [====] - [===] - [=====] -

and the gaps between those windows are

    - - - - [=] - - [=]- - - - -
"""
from __future__ import annotations

from taskline_lite.domain.interval import Interval
from taskline_lite.index.node import SegmentNode


def merged_coverage_ranges(node: SegmentNode) -> list[Interval]:
    """Disjoint, sorted ranges covering exactly the time the segments
    in *node* cover.

    Two windows never touch: segments meeting at a boundary are merged
    into one window.
    """
    ranges: list[Interval] = []
    current = node.bound.start

    while True:
        segment = node.closest_starting_after(current, non_empty_only=True)
        if segment is None:
            break

        window_start = segment.range.start
        window_end = segment.range.end
        while True:
            extension = node.longest_segment_covering(window_end)
            if extension is None:
                break
            window_end = extension.range.end

        ranges.append(Interval(window_start, window_end))
        current = window_end

    return ranges


def gaps_between_coverage(node: SegmentNode) -> list[Interval]:
    """Uncovered ranges between consecutive coverage windows.

    Nothing before the first window or after the last one is reported.
    """
    merged = merged_coverage_ranges(node)
    return [
        Interval(left.end, right.start)
        for left, right in zip(merged, merged[1:])
    ]


def covered_duration(node: SegmentNode) -> float:
    """Total time covered, counting overlapping time once."""
    return sum((r.duration for r in merged_coverage_ranges(node)), 0.0)
