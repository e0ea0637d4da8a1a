"""Shared fixtures for timeline manager tests."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from taskline_lite.domain.interval import Interval
from taskline_lite.timeline.events import MutationResult
from taskline_lite.timeline.manager import TimelineManager


def _clock(text: str) -> float:
    """'HH:MM' on 2000-01-01 UTC, as epoch seconds."""
    hh, mm = (int(part) for part in text.split(":"))
    return datetime(2000, 1, 1, hh, mm, tzinfo=timezone.utc).timestamp()


@pytest.fixture
def at():
    """at('10:30') -> epoch seconds on the reference day."""
    return _clock


@pytest.fixture
def date_range():
    """date_range('10:00', '11:00') -> Interval on the reference day."""
    return lambda start, end: Interval(_clock(start), _clock(end))


@pytest.fixture
def timeline() -> TimelineManager:
    return TimelineManager()


class Recorder:
    """Collects (manager, result) pairs passed to a change listener."""

    def __init__(self) -> None:
        self.calls: list[tuple[TimelineManager, MutationResult]] = []

    def __call__(self, manager: TimelineManager, result: MutationResult) -> None:
        self.calls.append((manager, result))

    @property
    def results(self) -> list[MutationResult]:
        return [result for _, result in self.calls]


@pytest.fixture
def recorder(timeline) -> Recorder:
    """A listener already subscribed to the timeline fixture."""
    rec = Recorder()
    timeline.subscribe(rec)
    return rec
