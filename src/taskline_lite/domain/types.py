"""Shared type aliases used across the timeline domain."""
from __future__ import annotations

from typing import TypeAlias

SegmentId: TypeAlias = int
TaskId: TypeAlias = int
Timestamp: TypeAlias = float  # Unix epoch seconds
Duration: TypeAlias = float   # seconds
