"""Report generation for profiling results.

Formats BenchmarkResult data into human-readable tables for terminal
output.
"""
from __future__ import annotations

from taskline_lite.profiling.harness import BenchmarkResult


def _share(part: float, total: float) -> str:
    if total <= 0:
        return "n/a"
    return f"{part / total * 100:.1f}%"


def format_report(result: BenchmarkResult, label: str | None = None) -> str:
    """Format a BenchmarkResult as a readable report string."""
    total = result.total_time_ms
    lines = [
        f"=== {label or result.label} ===",
        f"Segments:          {result.total_segments:,}",
        f"Total time:        {total:.1f} ms",
        "",
        "Breakdown:",
        f"  Build:           {result.build_time_ms:.1f} ms "
        f"({_share(result.build_time_ms, total)})",
        f"  Coverage merge:  {result.merge_time_ms:.1f} ms "
        f"({_share(result.merge_time_ms, total)})",
        f"  Gap scan:        {result.gaps_time_ms:.1f} ms "
        f"({_share(result.gaps_time_ms, total)})",
        f"  Total time:      {result.total_time_calc_ms:.1f} ms "
        f"({_share(result.total_time_calc_ms, total)})",
        f"  Point queries:   {result.point_query_time_ms:.1f} ms "
        f"({_share(result.point_query_time_ms, total)})",
        f"  Join (task 1):   {result.join_time_ms:.1f} ms "
        f"({_share(result.join_time_ms, total)})",
        "",
        f"Coverage windows:  {result.coverage_windows:,}",
        f"Gaps:              {result.gap_count:,}",
        f"Covered:           {result.covered_seconds / 3600:,.1f} h",
        f"Max depth:         {result.max_depth}",
    ]
    return "\n".join(lines)


def format_comparison(before: BenchmarkResult, after: BenchmarkResult) -> str:
    """Format a before/after comparison table."""

    def _speedup(old: float, new: float) -> str:
        if new <= 0:
            return "inf"
        return f"{old / new:.1f}x"

    rows = [
        ("Total time (ms)", before.total_time_ms, after.total_time_ms),
        ("Build (ms)", before.build_time_ms, after.build_time_ms),
        ("Coverage merge (ms)", before.merge_time_ms, after.merge_time_ms),
        ("Gap scan (ms)", before.gaps_time_ms, after.gaps_time_ms),
        ("Total time calc (ms)", before.total_time_calc_ms, after.total_time_calc_ms),
        ("Point queries (ms)", before.point_query_time_ms, after.point_query_time_ms),
        ("Join (ms)", before.join_time_ms, after.join_time_ms),
    ]
    lines = [
        f"{'Metric':<30} {'Before':>12} {'After':>12} {'Speedup':>10}",
        "-" * 66,
    ]
    for name, old, new in rows:
        lines.append(f"{name:<30} {old:>12.1f} {new:>12.1f} {_speedup(old, new):>10}")
    return "\n".join(lines)
