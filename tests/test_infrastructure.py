"""Tests for configuration, progress display, report objects and protocols."""

from __future__ import annotations

import io
import json

import pytest
from rich.console import Console

from treematch_bench.config import BenchConfig
from treematch_bench.errors import ConfigurationError
from treematch_bench.metrics import DEFAULT_METRICS
from treematch_bench.progress import ProgressReporter
from treematch_bench.reporters import to_json, to_markdown
from treematch_bench.results import BenchmarkReport, CaseResult, EditCounts, Status
from treematch_bench.treediff import ChawatheScriptGenerator, DirectoryComparator, PythonTreeParser, SimpleMatcher
from treematch_bench.types import EditScriptBuilder, Matcher, PairFinder, TreeParser


def _rows() -> list[CaseResult]:
    return [
        CaseResult("before/a.py", "simple", [1_000_000], 5, 1, counts=EditCounts(1, 0, 0, 1, 0)),
        CaseResult("before/b.py", "simple", [9], 5, 1, status=Status.TIMEOUT),
        CaseResult("before/a.py", "opt-20", [2_000_000], 5, 1, counts=EditCounts(2, 2, 0, 0, 0)),
    ]


# ===========================================================================
# BenchConfig
# ===========================================================================


class TestBenchConfig:
    def test_defaults(self):
        config = BenchConfig.from_env({})
        assert config.timeout == 5.0
        assert config.repeats == 1
        assert config.memory_limit_mb is None
        assert config.progress

    def test_env_fallback(self):
        config = BenchConfig.from_env({
            "TREEMATCH_BENCH_TIMEOUT": "2.5",
            "TREEMATCH_BENCH_REPEATS": "3",
            "TREEMATCH_BENCH_MEMORY_LIMIT": "1024",
        })
        assert config.timeout == 2.5
        assert config.repeats == 3
        assert config.memory_limit_mb == 1024

    def test_explicit_wins_over_env(self):
        config = BenchConfig.from_env({"TREEMATCH_BENCH_TIMEOUT": "2.5"}, timeout=9.0, verbose=True)
        assert config.timeout == 9.0
        assert config.verbose

    def test_bad_env_value(self):
        with pytest.raises(ConfigurationError, match="TREEMATCH_BENCH_REPEATS"):
            BenchConfig.from_env({"TREEMATCH_BENCH_REPEATS": "many"})

    @pytest.mark.parametrize("kwargs", [
        {"timeout": 0},
        {"timeout": -1.0},
        {"repeats": 0},
        {"memory_limit_mb": 0},
    ])
    def test_validation(self, kwargs):
        with pytest.raises(ConfigurationError):
            BenchConfig(**kwargs)


# ===========================================================================
# Progress
# ===========================================================================


class TestProgress:
    def test_renders_on_terminal(self):
        buf = io.StringIO()
        console = Console(file=buf, force_terminal=True, width=120)
        with ProgressReporter(3, console=console) as progress:
            assert progress.enabled
            for _ in range(3):
                progress.advance()
        assert progress.completed == 3
        assert "3/3" in buf.getvalue()

    def test_disabled_off_terminal(self):
        buf = io.StringIO()
        console = Console(file=buf, force_terminal=False)
        with ProgressReporter(2, console=console) as progress:
            progress.advance()
            progress.advance()
        assert not progress.enabled
        assert progress.completed == 2
        assert buf.getvalue() == ""

    def test_disabled_explicitly(self):
        buf = io.StringIO()
        console = Console(file=buf, force_terminal=True)
        with ProgressReporter(1, enabled=False, console=console) as progress:
            progress.advance()
        assert buf.getvalue() == ""


# ===========================================================================
# BenchmarkReport and reporters
# ===========================================================================


class TestBenchmarkReport:
    def _report(self) -> BenchmarkReport:
        return BenchmarkReport.from_rows(_rows(), [m() for m in DEFAULT_METRICS])

    def test_groups_by_algorithm_in_first_seen_order(self):
        report = self._report()
        assert list(report.summary) == ["simple", "opt-20"]
        assert report.config["num_cases"] == 2
        assert report.config["metrics"] == ["outcomes", "latency", "edit_volume"]

    def test_filter(self):
        filtered = self._report().filter(algorithm="opt-20")
        assert len(filtered.rows) == 1
        assert list(filtered.summary) == ["opt-20"]

    def test_to_json(self):
        data = json.loads(to_json(self._report()))
        assert data["rows"][1]["status"] == "TIMEOUT"
        assert data["rows"][1]["counts"] is None
        assert data["rows"][0]["counts"] == [1, 0, 0, 1, 0]

    def test_to_markdown(self):
        md = to_markdown(self._report())
        assert "| Algorithm |" in md
        assert "| simple |" in md
        assert "success_rate" in md

    def test_to_markdown_empty(self):
        assert to_markdown(BenchmarkReport.from_rows([])) == "No results to report."

    def test_to_dataframe(self):
        pytest.importorskip("pandas")
        df = self._report().to_dataframe()
        assert list(df["algorithm"]) == ["simple", "simple", "opt-20"]
        assert df["s"].isna().sum() == 1


# ===========================================================================
# Protocols
# ===========================================================================


def test_reference_collaborators_follow_protocols():
    assert isinstance(PythonTreeParser(), TreeParser)
    assert isinstance(DirectoryComparator(), PairFinder)
    assert isinstance(SimpleMatcher(), Matcher)
    assert isinstance(ChawatheScriptGenerator(), EditScriptBuilder)
