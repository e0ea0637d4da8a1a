"""Change descriptions produced by timeline mutations.

Every mutating call on TimelineManager returns a MutationResult listing
exactly what changed. Subscribed listeners receive the same object, once
per logical mutation, before the mutating call returns, and only when
something actually changed.

A single "added"/"removed" notification and a batch one are the same
thing here: a tuple of length one or more.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from taskline_lite.domain.segment import Segment
from taskline_lite.domain.types import SegmentId

if TYPE_CHECKING:
    from taskline_lite.timeline.manager import TimelineManager


@dataclass(frozen=True, slots=True)
class MutationResult:
    """Segments added, removed and updated by one mutating call.

    updated holds the segments as they are after the change.
    """
    added: tuple[Segment, ...] = ()
    removed: tuple[Segment, ...] = ()
    updated: tuple[Segment, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.updated)

    @property
    def removed_ids(self) -> frozenset[SegmentId]:
        return frozenset(s.id for s in self.removed)


NO_CHANGE = MutationResult()

ChangeListener = Callable[["TimelineManager", MutationResult], None]
