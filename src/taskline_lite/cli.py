"""taskline-lite CLI entry point.

Usage: taskline-lite [-v] [command]
"""
import argparse
import logging
import sys

from taskline_lite.profiling.load_generator import WORKLOADS


def _add_profile_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "profile",
        help="Run the profiling harness over a synthetic segment workload.",
    )
    p.add_argument(
        "--segments", type=int, default=10_000,
        help="Number of segments to generate (default: 10000)",
    )
    p.add_argument(
        "--workload", choices=WORKLOADS, default="gapped",
        help="Shape of the generated timeline (default: gapped)",
    )
    p.add_argument(
        "--tasks", type=int, default=1,
        help="Number of tasks the segments are spread over (default: 1)",
    )
    p.add_argument(
        "--queries", type=int, default=1_000,
        help="Number of point lookups to time (default: 1000)",
    )
    p.add_argument(
        "--seed", type=int, default=42,
        help="RNG seed for reproducible runs (default: 42)",
    )
    p.add_argument(
        "--cprofile", action="store_true",
        help="Enable cProfile and print top functions by cumulative time.",
    )
    p.add_argument(
        "--compare", action="store_true",
        help="Also run the sort-and-sweep baseline and print a comparison.",
    )


def _run_profile(args: argparse.Namespace) -> None:
    from taskline_lite.profiling.harness import run_baseline, run_benchmark
    from taskline_lite.profiling.report import format_comparison, format_report

    common = dict(
        num_segments=args.segments,
        workload=args.workload,
        num_tasks=args.tasks,
        num_queries=args.queries,
        seed=args.seed,
    )

    if args.compare:
        before = run_baseline(**common)
        after = run_benchmark(**common)
        print(format_report(before, label="Before (sort-and-sweep)"))
        print()
        print(format_report(after, label="After (segment index)"))
        print()
        print(format_comparison(before, after))
    else:
        result = run_benchmark(**common, profile=args.cprofile)
        print(format_report(result))
        if result.cprofile_stats:
            print()
            print("--- cProfile top functions ---")
            print(result.cprofile_stats)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="taskline-lite",
        description="Task time-segment index -- pure Python, zero infrastructure.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log index growth, compaction and joins at DEBUG level.",
    )
    subparsers = parser.add_subparsers(dest="command")

    _add_profile_parser(subparsers)

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "profile":
        try:
            _run_profile(args)
        except ValueError as exc:
            parser.error(str(exc))
