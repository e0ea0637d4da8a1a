"""Segment index: a four-way subdividing tree over the time axis."""

from taskline_lite.index.config import DEFAULT_CONFIG, IndexConfig
from taskline_lite.index.coverage import (
    covered_duration,
    gaps_between_coverage,
    merged_coverage_ranges,
)
from taskline_lite.index.node import InvariantViolation, SegmentNode
from taskline_lite.index.segment_index import SegmentIndex

__all__ = [
    "DEFAULT_CONFIG",
    "IndexConfig",
    "InvariantViolation",
    "SegmentIndex",
    "SegmentNode",
    "covered_duration",
    "gaps_between_coverage",
    "merged_coverage_ranges",
]
