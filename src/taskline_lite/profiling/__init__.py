"""Profiling harness and load generation for taskline-lite."""

from taskline_lite.profiling.harness import (
    BenchmarkResult,
    run_baseline,
    run_benchmark,
    sort_and_sweep,
)
from taskline_lite.profiling.load_generator import WORKLOADS, SegmentLoadGenerator
from taskline_lite.profiling.report import format_comparison, format_report

__all__ = [
    "WORKLOADS",
    "BenchmarkResult",
    "SegmentLoadGenerator",
    "format_comparison",
    "format_report",
    "run_baseline",
    "run_benchmark",
    "sort_and_sweep",
]
