"""Timeline manager: task-facing CRUD and duration queries over the index."""

from taskline_lite.timeline.events import NO_CHANGE, ChangeListener, MutationResult
from taskline_lite.timeline.ids import (
    IdAllocator,
    MonotonicIdAllocator,
    WallClockIdAllocator,
)
from taskline_lite.timeline.manager import TimelineManager

__all__ = [
    "NO_CHANGE",
    "ChangeListener",
    "IdAllocator",
    "MonotonicIdAllocator",
    "MutationResult",
    "TimelineManager",
    "WallClockIdAllocator",
]
