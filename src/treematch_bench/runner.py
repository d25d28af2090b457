"""Core benchmark orchestration."""

from __future__ import annotations

import sys as _sys
import time
from pathlib import Path
from typing import Any, Iterator

from treematch_bench.config import BenchConfig
from treematch_bench.errors import ConfigurationError, TreeSyntaxError
from treematch_bench.executor import MatchExecutor
from treematch_bench.metrics.edit_volume import extract
from treematch_bench.progress import ProgressReporter
from treematch_bench.registry import MatcherConfiguration, resolve
from treematch_bench.results import CaseResult, RunSummary, Status
from treematch_bench.treediff.actions import ChawatheScriptGenerator
from treematch_bench.treediff.pairs import DirectoryComparator
from treematch_bench.treediff.parser import PythonTreeParser


class CaseRunner:
    """Evaluate every configuration on one (before, after) pair.

    Args:
        configurations: Configurations in registration order.
        executor: Runs each match in isolation.
        parser: Object implementing the TreeParser protocol.
        script_builder: Object implementing the EditScriptBuilder protocol.
        root: Input folder; case ids are paths relative to it.
        setup_ns: Startup time reported on every row.
        completed: (case, algorithm) keys to skip, e.g. from a resumed report.
        verbose: Print parse timings.
    """

    def __init__(
        self,
        configurations: list[MatcherConfiguration],
        executor: MatchExecutor,
        parser: Any = None,
        script_builder: Any = None,
        root: str | Path | None = None,
        setup_ns: int = 0,
        completed: set[tuple[str, str]] | None = None,
        verbose: bool = False,
    ) -> None:
        self.configurations = configurations
        self.executor = executor
        self.parser = parser or PythonTreeParser()
        self.script_builder = script_builder or ChawatheScriptGenerator()
        self.root = Path(root) if root is not None else None
        self.setup_ns = setup_ns
        self.completed = completed if completed is not None else set()
        self.verbose = verbose
        self.skipped = 0

    def case_id(self, before: str | Path) -> str:
        path = Path(before)
        if self.root is not None:
            try:
                return path.relative_to(self.root).as_posix()
            except ValueError:
                pass
        return path.as_posix()

    def run(self, before: str | Path, after: str | Path) -> Iterator[CaseResult]:
        """Yield one CaseResult per pending configuration, in order.

        Both files are parsed once. A pair that cannot be parsed yields
        nothing and is counted in ``skipped``.
        """
        case = self.case_id(before)
        pending = self.configurations
        if self.completed:
            pending = [c for c in pending if (case, c.name) not in self.completed]
            if not pending:
                return

        t0 = time.perf_counter_ns()
        try:
            src = self.parser.parse(before)
            dst = self.parser.parse(after)
        except TreeSyntaxError as exc:
            print(f"Problem parsing {case}: {exc.reason}", file=_sys.stderr)
            self.skipped += 1
            return
        except MemoryError:
            print(f"Out of memory parsing {case}", file=_sys.stderr)
            self.skipped += 1
            return
        parse_ns = time.perf_counter_ns() - t0

        if self.verbose:
            print(f"Parsed {case} in {parse_ns / 1e9:.3f}s", file=_sys.stderr)

        for config in pending:
            outcome = self.executor.execute(config.instantiate(), src, dst)

            counts = None
            if outcome.ok:
                counts = extract(self.script_builder.compute(outcome.mapping))
            elif outcome.status is Status.TIMEOUT:
                print(f"Timeout for {case} with {config.name}", file=_sys.stderr)
            else:
                print(f"Out of memory for {case} with {config.name}", file=_sys.stderr)

            yield CaseResult(
                case=case,
                algorithm=config.name,
                match_ns=outcome.samples,
                parse_ns=parse_ns,
                setup_ns=self.setup_ns,
                status=outcome.status,
                counts=counts,
            )


def check_input_dir(input_dir: str | Path) -> tuple[Path, Path]:
    """Return the ``before/`` and ``after/`` folders of a corpus.

    Raises ConfigurationError if either is missing.
    """
    root = Path(input_dir)
    before_dir, after_dir = root / "before", root / "after"
    for folder in (before_dir, after_dir):
        if not folder.is_dir():
            raise ConfigurationError(f"Missing {folder.name}/ folder in {root}")
    return before_dir, after_dir


def run_benchmark(
    input_dir: str | Path,
    writer: Any,
    configurations: list[MatcherConfiguration] | None = None,
    *,
    config: BenchConfig | None = None,
    pair_finder: Any = None,
    parser: Any = None,
    script_builder: Any = None,
    executor: MatchExecutor | None = None,
    started_ns: int | None = None,
) -> RunSummary:
    """Benchmark every configuration on every changed pair under ``input_dir``.

    Args:
        input_dir: Folder containing ``before/`` and ``after/`` subtrees.
        writer: Report sink with ``append(result)`` (see ReportWriter). Rows
            are written as soon as they exist. With ``config.resume``, the
            writer's ``completed`` keys are skipped.
        configurations: Configurations to evaluate. Defaults to the default suite.
        config: Run settings. Defaults to BenchConfig().
        pair_finder: Object implementing the PairFinder protocol.
        parser: Object implementing the TreeParser protocol.
        script_builder: Object implementing the EditScriptBuilder protocol.
        executor: Match executor. Built from ``config`` when omitted.
        started_ns: ``perf_counter_ns()`` at process start. Setup time is
            measured from here to the first pair.

    Returns:
        RunSummary with pair and row totals.
    """
    if started_ns is None:
        started_ns = time.perf_counter_ns()
    if config is None:
        config = BenchConfig()

    root = Path(input_dir)
    before_dir, after_dir = check_input_dir(root)

    if configurations is None:
        configurations = resolve()
    if pair_finder is None:
        pair_finder = DirectoryComparator()
    if executor is None:
        executor = MatchExecutor(
            timeout=config.timeout,
            repeats=config.repeats,
            memory_limit_mb=config.memory_limit_mb,
        )

    pairs: list[tuple[Path, Path]] = list(pair_finder.compare(before_dir, after_dir))
    runner = CaseRunner(
        configurations,
        executor,
        parser=parser,
        script_builder=script_builder,
        root=root,
        setup_ns=time.perf_counter_ns() - started_ns,
        completed=getattr(writer, "completed", None) if config.resume else None,
        verbose=config.verbose,
    )

    summary = RunSummary(total_pairs=len(pairs))
    t0 = time.monotonic()
    with ProgressReporter(summary.total_pairs, enabled=config.progress) as progress:
        for before, after in pairs:
            for result in runner.run(before, after):
                writer.append(result)
                summary.rows_written += 1
            summary.processed += 1
            progress.advance()

    summary.skipped = runner.skipped
    summary.elapsed = time.monotonic() - t0
    progress.console.print(
        f"Completed {summary.processed}/{summary.total_pairs} pairs, "
        f"{summary.rows_written} rows written",
        highlight=False,
    )
    return summary
