"""Domain model for taskline-lite.

Re-exports the value types for convenient access:
    from taskline_lite.domain import Interval, Segment
"""
from taskline_lite.domain.interval import Interval, span
from taskline_lite.domain.segment import (
    Segment,
    earliest_start,
    interval_sum,
    latest_end,
    sorted_by_start,
    total_range,
)
from taskline_lite.domain.types import (
    Duration,
    SegmentId,
    TaskId,
    Timestamp,
)

__all__ = [
    "Interval",
    "span",
    "Segment",
    "earliest_start",
    "interval_sum",
    "latest_end",
    "sorted_by_start",
    "total_range",
    "Duration",
    "SegmentId",
    "TaskId",
    "Timestamp",
]
