"""Shared fixtures for segment index tests."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from taskline_lite.domain.interval import Interval
from taskline_lite.domain.segment import Segment
from taskline_lite.index.config import IndexConfig


# Fixed seed so benchmark numbers are reproducible across runs
SEED = 42

BASE_TIME = datetime(2000, 1, 1, 1, 0, tzinfo=timezone.utc).timestamp()
HOUR = 3600.0


@pytest.fixture
def base_time() -> float:
    return BASE_TIME


@pytest.fixture
def small_config() -> IndexConfig:
    """Splits after two local segments, at most two levels deep."""
    return IndexConfig(max_depth=2, max_count_before_split=2)


@pytest.fixture
def make_segment():
    """Factory: make_segment(start_h, end_h, task_id=1, seg_id=None).

    Offsets are hours after BASE_TIME. Ids count up from 1 unless
    given explicitly.
    """
    counter = iter(range(1, 1_000_000))

    def _make(
        start_h: float,
        end_h: float,
        task_id: int = 1,
        seg_id: int | None = None,
    ) -> Segment:
        return Segment(
            id=next(counter) if seg_id is None else seg_id,
            task_id=task_id,
            range=Interval(BASE_TIME + start_h * HOUR, BASE_TIME + end_h * HOUR),
        )

    return _make


@pytest.fixture
def hours():
    """Convert an hour offset into an absolute timestamp."""
    return lambda h: BASE_TIME + h * HOUR
