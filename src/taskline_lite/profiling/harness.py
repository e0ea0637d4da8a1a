"""Profiling harness for the segment index and timeline manager.

Builds a TimelineManager over a synthetic workload, then times the
operations a timeline view leans on: coverage merge, gap scan, total
time, point lookups and a per-task join. Optionally runs the whole
thing under cProfile and reports the top functions by cumulative time.

run_baseline answers the same coverage questions with a plain
sort-and-sweep over a list, which is what the tree is competing with.
"""
from __future__ import annotations

import cProfile
import io
import pstats
import time
from dataclasses import dataclass

from taskline_lite.domain.interval import Interval
from taskline_lite.domain.segment import Segment
from taskline_lite.profiling.load_generator import SegmentLoadGenerator
from taskline_lite.timeline.manager import TimelineManager


@dataclass(slots=True)
class BenchmarkResult:
    """Timing results from a single run."""
    label: str
    total_segments: int
    build_time_ms: float
    merge_time_ms: float
    gaps_time_ms: float
    total_time_calc_ms: float
    point_query_time_ms: float
    join_time_ms: float
    total_time_ms: float
    coverage_windows: int
    gap_count: int
    covered_seconds: float
    max_depth: int
    cprofile_stats: str | None = None


def sort_and_sweep(segments: list[Segment]) -> list[Interval]:
    """Merge segment ranges by sorting on start and sweeping once.

    Ranges that overlap or touch end up in the same window. Zero-length
    segments cover no time and are skipped.
    """
    windows: list[Interval] = []
    for segment in sorted(segments, key=lambda s: s.range.start):
        if segment.range.is_empty:
            continue
        if windows and segment.range.start <= windows[-1].end:
            last = windows[-1]
            if segment.range.end > last.end:
                windows[-1] = Interval(last.start, segment.range.end)
        else:
            windows.append(segment.range)
    return windows


def _profiled(run, profile: bool) -> str | None:
    if not profile:
        run()
        return None
    pr = cProfile.Profile()
    pr.enable()
    run()
    pr.disable()
    s = io.StringIO()
    ps = pstats.Stats(pr, stream=s).sort_stats("cumulative")
    ps.print_stats(30)
    return s.getvalue()


def run_benchmark(
    num_segments: int = 10_000,
    workload: str = "gapped",
    num_tasks: int = 1,
    num_queries: int = 1_000,
    seed: int = 42,
    profile: bool = False,
) -> BenchmarkResult:
    """Time the index-backed operations over one generated workload.

    Steps:
      1. Build a TimelineManager from the segments (one bound rebuild)
      2. merged_coverage_ranges over all segments
      3. gaps_between_coverage over all segments
      4. total_time without overlap
      5. num_queries point lookups via segment_at
      6. join_connected_segments for task 1 (last, it mutates)
    """
    if num_queries < 0:
        raise ValueError(f"num_queries must be >= 0, got {num_queries}")
    gen = SegmentLoadGenerator(
        num_segments=num_segments,
        num_tasks=num_tasks,
        workload=workload,
        seed=seed,
    )
    segments = gen.generate()
    points = gen.query_points(num_queries)

    timings = dict(build=0.0, merge=0.0, gaps=0.0, total=0.0, points=0.0, join=0.0)
    outcome: dict[str, object] = {}

    def _timed(key: str, fn):
        t0 = time.perf_counter()
        value = fn()
        timings[key] += (time.perf_counter() - t0) * 1000
        return value

    def _run():
        manager = _timed("build", lambda: TimelineManager(segments))
        windows = _timed("merge", manager.merged_coverage_ranges)
        gaps = _timed("gaps", manager.gaps_between_coverage)
        covered = _timed("total", manager.total_time)
        _timed("points", lambda: [manager.segment_at(p) for p in points])
        # depth before the join; joining collapses connected runs
        outcome["max_depth"] = manager.index.maximum_depth()
        _timed("join", lambda: manager.join_connected_segments(1))
        outcome["windows"] = len(windows)
        outcome["gaps"] = len(gaps)
        outcome["covered"] = covered

    t_total_start = time.perf_counter()
    cprofile_text = _profiled(_run, profile)
    total_ms = (time.perf_counter() - t_total_start) * 1000

    return BenchmarkResult(
        label=f"segment index ({workload})",
        total_segments=len(segments),
        build_time_ms=timings["build"],
        merge_time_ms=timings["merge"],
        gaps_time_ms=timings["gaps"],
        total_time_calc_ms=timings["total"],
        point_query_time_ms=timings["points"],
        join_time_ms=timings["join"],
        total_time_ms=total_ms,
        coverage_windows=outcome["windows"],
        gap_count=outcome["gaps"],
        covered_seconds=outcome["covered"],
        max_depth=outcome["max_depth"],
        cprofile_stats=cprofile_text,
    )


def run_baseline(
    num_segments: int = 10_000,
    workload: str = "gapped",
    num_tasks: int = 1,
    num_queries: int = 1_000,
    seed: int = 42,
    profile: bool = False,
) -> BenchmarkResult:
    """Answer the same questions with plain lists and linear scans.

    Build is copying the list. Point queries scan every segment. The
    join is a sort-and-sweep over the task's segments.
    """
    if num_queries < 0:
        raise ValueError(f"num_queries must be >= 0, got {num_queries}")
    gen = SegmentLoadGenerator(
        num_segments=num_segments,
        num_tasks=num_tasks,
        workload=workload,
        seed=seed,
    )
    segments = gen.generate()
    points = gen.query_points(num_queries)

    timings = dict(build=0.0, merge=0.0, gaps=0.0, total=0.0, points=0.0, join=0.0)
    outcome: dict[str, object] = {}

    def _timed(key: str, fn):
        t0 = time.perf_counter()
        value = fn()
        timings[key] += (time.perf_counter() - t0) * 1000
        return value

    def _point(t: float) -> Segment | None:
        for s in stored:
            if s.range.start <= t < s.range.end:
                return s
        return None

    def _gaps(windows: list[Interval]) -> list[Interval]:
        return [Interval(a.end, b.start) for a, b in zip(windows, windows[1:])]

    def _run():
        windows = _timed("merge", lambda: sort_and_sweep(stored))
        gaps = _timed("gaps", lambda: _gaps(sort_and_sweep(stored)))
        covered = _timed(
            "total", lambda: sum(w.duration for w in sort_and_sweep(stored))
        )
        _timed("points", lambda: [_point(p) for p in points])
        _timed("join", lambda: sort_and_sweep([s for s in stored if s.task_id == 1]))
        outcome["windows"] = len(windows)
        outcome["gaps"] = len(gaps)
        outcome["covered"] = covered

    t_total_start = time.perf_counter()
    t0 = time.perf_counter()
    stored = list(segments)
    timings["build"] = (time.perf_counter() - t0) * 1000
    cprofile_text = _profiled(_run, profile)
    total_ms = (time.perf_counter() - t_total_start) * 1000

    return BenchmarkResult(
        label=f"sort-and-sweep ({workload})",
        total_segments=len(segments),
        build_time_ms=timings["build"],
        merge_time_ms=timings["merge"],
        gaps_time_ms=timings["gaps"],
        total_time_calc_ms=timings["total"],
        point_query_time_ms=timings["points"],
        join_time_ms=timings["join"],
        total_time_ms=total_ms,
        coverage_windows=outcome["windows"],
        gap_count=outcome["gaps"],
        covered_seconds=outcome["covered"],
        max_depth=0,
        cprofile_stats=cprofile_text,
    )
