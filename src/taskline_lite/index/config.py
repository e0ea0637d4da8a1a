"""Tuning knobs for the segment index."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class IndexConfig:
    """Subdivision limits shared by every node of one tree.

    max_depth: nodes at this depth never subdivide; their local buffer
        just keeps growing. The root is depth 0.
    max_count_before_split: a node subdivides when an insert arrives
        and its local buffer already holds this many segments.

    Defaults are tuned for 10^4..10^5 segments: 4**6 = 4096 leaves.
    """
    max_depth: int = 6
    max_count_before_split: int = 10

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.max_count_before_split < 1:
            raise ValueError(
                "max_count_before_split must be >= 1, "
                f"got {self.max_count_before_split}"
            )


DEFAULT_CONFIG = IndexConfig()
