"""CLI entry point for treematch-bench.

Usage:
    treematch-bench run corpus/ report.csv
    treematch-bench run corpus/ report.csv simple classic:bu_minsize=50 --timeout 10
    treematch-bench summarize report.csv
    python -m treematch_bench algorithms
"""

from __future__ import annotations

import argparse
import sys
import time
from typing import Any, NoReturn


class _ArgumentParser(argparse.ArgumentParser):
    """Exit with status 1 (not argparse's 2) on usage errors."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = _ArgumentParser(
        prog="treematch-bench",
        description="Benchmark tree-matching algorithms on before/after source pairs.",
        epilog=(
            "Examples:\n"
            "  treematch-bench run corpus/ report.csv\n"
            "  treematch-bench run corpus/ report.csv simple hybrid:bu_minsize=50 --repeats 3\n"
            "  treematch-bench summarize report.csv --output json\n"
            "\n"
            "Algorithm identifiers are a tag, optionally followed by options:\n"
            "  classic:bu_minsize=200,bu_minsim=0.4"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    run = commands.add_parser("run", help="Run the benchmark and stream a CSV report.")
    run.add_argument("input_folder", help="Folder with before/ and after/ subtrees.")
    run.add_argument("output_file", help="Report file (created or truncated).")
    run.add_argument(
        "algorithms",
        nargs="*",
        metavar="ALGORITHM",
        help="Algorithm identifiers (default: simple, hybrid-20, opt-20, opt-200).",
    )
    run.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Time budget per match (default: 5, or $TREEMATCH_BENCH_TIMEOUT).",
    )
    run.add_argument(
        "--repeats",
        type=int,
        default=None,
        metavar="N",
        help="Match measurements per row (default: 1, or $TREEMATCH_BENCH_REPEATS).",
    )
    run.add_argument(
        "--memory-limit",
        type=int,
        default=None,
        metavar="MB",
        help="Address-space limit per match worker (default: none, or "
        "$TREEMATCH_BENCH_MEMORY_LIMIT).",
    )
    run.add_argument(
        "--resume",
        action="store_true",
        help="Append to an existing report, skipping rows already written.",
    )
    run.add_argument("--no-progress", action="store_true", help="Hide the progress bar.")
    run.add_argument("--verbose", action="store_true", help="Print parse timings.")

    summarize = commands.add_parser("summarize", help="Summarize a report per algorithm.")
    summarize.add_argument("report", help="Report file written by `run`.")
    summarize.add_argument(
        "--algorithm",
        default=None,
        metavar="NAME",
        help="Only summarize this algorithm.",
    )
    summarize.add_argument(
        "--output",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table).",
    )

    commands.add_parser("algorithms", help="List algorithm tags and the default suite.")

    return parser


def _run(args: argparse.Namespace, started_ns: int) -> None:
    from treematch_bench.config import BenchConfig
    from treematch_bench.registry import resolve
    from treematch_bench.reporters.csv_out import ReportWriter
    from treematch_bench.runner import check_input_dir, run_benchmark

    config = BenchConfig.from_env(
        timeout=args.timeout,
        repeats=args.repeats,
        memory_limit_mb=args.memory_limit,
        progress=not args.no_progress,
        verbose=args.verbose,
        resume=args.resume,
    )
    configurations = resolve(args.algorithms)
    # before opening (and truncating) the report
    check_input_dir(args.input_folder)

    with ReportWriter(args.output_file, repeats=config.repeats, resume=config.resume) as writer:
        run_benchmark(
            args.input_folder,
            writer,
            configurations,
            config=config,
            started_ns=started_ns,
        )


def _summarize(args: argparse.Namespace) -> None:
    from treematch_bench.metrics import DEFAULT_METRICS
    from treematch_bench.reporters.csv_out import read_report
    from treematch_bench.results import BenchmarkReport

    rows = read_report(args.report)
    if args.algorithm is not None:
        rows = [r for r in rows if r.algorithm == args.algorithm]
        if not rows:
            raise SystemExit(f"No rows for algorithm {args.algorithm!r} in {args.report}")

    report = BenchmarkReport.from_rows(rows, [m() for m in DEFAULT_METRICS])

    if args.output == "json":
        from treematch_bench.reporters.json_out import to_json

        print(to_json(report))
    else:
        from treematch_bench.reporters.markdown import to_markdown

        print(to_markdown(report))


def _algorithms() -> None:
    from treematch_bench.registry import DEFAULT_SUITE, registry

    print("Algorithms:")
    for tag in registry.list("matcher"):
        defaults: dict[str, Any] = getattr(registry.get("matcher", tag), "defaults", {})
        options = ", ".join(f"{k}={v}" for k, v in defaults.items())
        print(f"  {tag:<10} {options}")
    print("Default suite:")
    for name, (tag, options) in DEFAULT_SUITE.items():
        extra = ",".join(f"{k}={v}" for k, v in options.items())
        print(f"  {name:<10} {tag}{':' + extra if extra else ''}")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    started_ns = time.perf_counter_ns()
    parser = build_parser()
    args = parser.parse_args(argv)

    from treematch_bench.errors import BenchmarkError

    try:
        if args.command == "run":
            _run(args, started_ns)
        elif args.command == "summarize":
            _summarize(args)
        else:
            _algorithms()
    except BenchmarkError as exc:
        raise SystemExit(str(exc))


if __name__ == "__main__":
    main()
