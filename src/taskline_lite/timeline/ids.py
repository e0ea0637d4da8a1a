"""Segment id allocation strategies.

An allocator is called with the highest segment id the manager has
stored so far (None before the first one) and returns a fresh id.

MonotonicIdAllocator is the default: a counter that never hands out
the same id twice in one process and never falls below anything the
manager has already seen, including ids loaded from elsewhere.

WallClockIdAllocator keeps the legacy scheme

    next_id = int(now_seconds) + max(existing ids, default 0) + 1

for callers whose stored data was produced that way. TimelineManager
passes its high-water id, which removals never lower, rather than the
maximum of the ids still stored. The two differ once the highest-id
segment has been removed; from then on ids run ahead of the legacy
formula and never repeat a removed id. Two calls in the
same second still get different ids because the maximum has grown in
between, but ids are not unique across restarts: once a loaded id is
numerically ahead of the clock, the clock term no longer separates
sessions, and ids from two sessions can collide when merged.
"""
from __future__ import annotations

import time
from typing import Callable, Protocol

from taskline_lite.domain.types import SegmentId


class IdAllocator(Protocol):
    def __call__(self, highest_existing: SegmentId | None) -> SegmentId: ...


class MonotonicIdAllocator:
    """Strictly increasing ids: max(last issued, highest existing) + 1."""

    __slots__ = ("_last",)

    def __init__(self, start: SegmentId = 0) -> None:
        self._last = start

    @property
    def last_issued(self) -> SegmentId:
        return self._last

    def __call__(self, highest_existing: SegmentId | None) -> SegmentId:
        self._last = max(self._last, highest_existing or 0) + 1
        return self._last


class WallClockIdAllocator:
    """Legacy wall-clock seeded ids. See the module docstring for the
    cross-session collision risk."""

    __slots__ = ("_clock",)

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    def __call__(self, highest_existing: SegmentId | None) -> SegmentId:
        return int(self._clock()) + (highest_existing or 0) + 1
