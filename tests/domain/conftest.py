"""Shared fixtures for interval and segment value-object tests."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from taskline_lite.domain.interval import Interval
from taskline_lite.domain.segment import Segment


# 2000-01-01 01:00:00 UTC, the reference start used across the suite
BASE_TIME = datetime(2000, 1, 1, 1, 0, tzinfo=timezone.utc).timestamp()
HOUR = 3600.0


@pytest.fixture
def base_time() -> float:
    return BASE_TIME


@pytest.fixture
def make_segment():
    """Factory: make_segment(start_h, end_h, task_id=1) with auto ids.

    Offsets are hours after BASE_TIME.
    """
    counter = iter(range(1, 1_000_000))

    def _make(start_h: float, end_h: float, task_id: int = 1) -> Segment:
        return Segment(
            id=next(counter),
            task_id=task_id,
            range=Interval(BASE_TIME + start_h * HOUR, BASE_TIME + end_h * HOUR),
        )

    return _make
