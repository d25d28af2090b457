"""treematch-bench: Benchmark tree-matching algorithms on before/after source pairs."""

from treematch_bench.config import BenchConfig
from treematch_bench.executor import MatchExecutor, MatchOutcome
from treematch_bench.registry import MatcherConfiguration, register_matcher, resolve
from treematch_bench.reporters.csv_out import ReportWriter, read_report
from treematch_bench.results import BenchmarkReport, CaseResult, EditCounts, RunSummary, Status
from treematch_bench.runner import CaseRunner, run_benchmark

__all__ = [
    "run_benchmark",
    "BenchConfig",
    "BenchmarkReport",
    "CaseResult",
    "CaseRunner",
    "EditCounts",
    "MatchExecutor",
    "MatchOutcome",
    "MatcherConfiguration",
    "ReportWriter",
    "RunSummary",
    "Status",
    "read_report",
    "register_matcher",
    "resolve",
]
