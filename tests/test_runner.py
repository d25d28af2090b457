"""Tests for the case runner and benchmark orchestration."""

from __future__ import annotations

import multiprocessing

import pytest

from treematch_bench import BenchConfig, CaseRunner, ReportWriter, read_report, resolve, run_benchmark
from treematch_bench.errors import ConfigurationError
from treematch_bench.executor import MatchOutcome
from treematch_bench.registry import MatcherConfiguration
from treematch_bench.results import CaseResult, EditCounts, Status
from treematch_bench.treediff import PythonTreeParser, SimpleMatcher

needs_fork = pytest.mark.skipif(
    "fork" not in multiprocessing.get_all_start_methods(),
    reason="needs the fork start method",
)

CONFIG = BenchConfig(progress=False)


class FakeExecutor:
    """Runs matchers in-process and can force an outcome per algorithm call."""

    def __init__(self, forced: dict[int, Status] | None = None) -> None:
        self.forced = forced or {}
        self.calls: list[object] = []

    def execute(self, matcher, src, dst, timeout=None):
        index = len(self.calls)
        self.calls.append(matcher)
        if index in self.forced:
            return MatchOutcome(status=self.forced[index], samples=[123])
        return MatchOutcome(status=Status.SUCCESS, samples=[456], mapping=matcher.match(src.root, dst.root))


class ListWriter:
    def __init__(self) -> None:
        self.rows: list[CaseResult] = []
        self.completed: set[tuple[str, str]] = set()

    def append(self, result: CaseResult) -> None:
        self.rows.append(result)


class CountingParser(PythonTreeParser):
    def __init__(self) -> None:
        self.parsed: list[str] = []

    def parse(self, path):
        self.parsed.append(str(path))
        return super().parse(path)


class RecursingMatcher:
    def match(self, src, dst):
        return self.match(src, dst)


def _configs(*names: str) -> list[MatcherConfiguration]:
    return [MatcherConfiguration(name, SimpleMatcher) for name in names]


def _corpus(tmp_path, files: dict[str, tuple[str, str]]):
    for rel, (before, after) in files.items():
        for side, text in (("before", before), ("after", after)):
            path = tmp_path / side / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text)
    return tmp_path


RENAME = ("def foo(a):\n    return a + 1\n", "def bar(a):\n    return a + 1\n")


# ---------------------------------------------------------------------------
# CaseRunner
# ---------------------------------------------------------------------------


class TestCaseRunner:
    def test_one_row_per_configuration_in_order(self, tmp_path):
        root = _corpus(tmp_path, {"mod.py": RENAME})
        runner = CaseRunner(_configs("A", "B", "C"), FakeExecutor(), root=root, setup_ns=7)
        rows = list(runner.run(root / "before" / "mod.py", root / "after" / "mod.py"))

        assert [r.algorithm for r in rows] == ["A", "B", "C"]
        assert all(r.case == "before/mod.py" for r in rows)
        assert all(r.setup_ns == 7 for r in rows)
        # parsed once, shared by every configuration
        assert len({r.parse_ns for r in rows}) == 1

    def test_fresh_matcher_per_configuration(self, tmp_path):
        root = _corpus(tmp_path, {"mod.py": RENAME})
        executor = FakeExecutor()
        runner = CaseRunner(_configs("A", "B"), executor, root=root)
        list(runner.run(root / "before" / "mod.py", root / "after" / "mod.py"))
        list(runner.run(root / "before" / "mod.py", root / "after" / "mod.py"))
        assert len({id(m) for m in executor.calls}) == 4

    def test_parses_each_side_once(self, tmp_path):
        root = _corpus(tmp_path, {"mod.py": RENAME})
        parser = CountingParser()
        runner = CaseRunner(_configs("A", "B"), FakeExecutor(), parser=parser, root=root)
        list(runner.run(root / "before" / "mod.py", root / "after" / "mod.py"))
        assert len(parser.parsed) == 2

    def test_lazy(self, tmp_path):
        root = _corpus(tmp_path, {"mod.py": RENAME})
        executor = FakeExecutor()
        runner = CaseRunner(_configs("A", "B"), executor, root=root)
        rows = runner.run(root / "before" / "mod.py", root / "after" / "mod.py")
        next(rows)
        assert len(executor.calls) == 1

    def test_failures_become_sentinel_rows(self, tmp_path, capsys):
        root = _corpus(tmp_path, {"mod.py": RENAME})
        executor = FakeExecutor({0: Status.TIMEOUT, 1: Status.OUT_OF_MEMORY})
        runner = CaseRunner(_configs("A", "B", "C"), executor, root=root)
        rows = list(runner.run(root / "before" / "mod.py", root / "after" / "mod.py"))

        assert [r.status for r in rows] == [Status.TIMEOUT, Status.OUT_OF_MEMORY, Status.SUCCESS]
        assert rows[0].counts is None
        assert rows[0].match_ns == [123]
        assert rows[2].counts == EditCounts(1, 0, 0, 1, 0)
        err = capsys.readouterr().err
        assert "Timeout for before/mod.py with A" in err
        assert "Out of memory for before/mod.py with B" in err

    def test_syntax_error_skips_pair(self, tmp_path, capsys):
        root = _corpus(tmp_path, {"bad.py": ("x = 1\n", "def broken(:\n")})
        runner = CaseRunner(_configs("A"), FakeExecutor(), root=root)
        rows = list(runner.run(root / "before" / "bad.py", root / "after" / "bad.py"))
        assert rows == []
        assert runner.skipped == 1
        assert "Problem parsing before/bad.py" in capsys.readouterr().err

    def test_parse_out_of_memory_skips_pair(self, tmp_path, capsys):
        class ExhaustedParser:
            def parse(self, path):
                raise MemoryError

        root = _corpus(tmp_path, {"mod.py": RENAME})
        runner = CaseRunner(_configs("A"), FakeExecutor(), parser=ExhaustedParser(), root=root)
        assert list(runner.run(root / "before" / "mod.py", root / "after" / "mod.py")) == []
        assert "Out of memory parsing before/mod.py" in capsys.readouterr().err

    def test_completed_configurations_skipped(self, tmp_path):
        root = _corpus(tmp_path, {"mod.py": RENAME})
        parser = CountingParser()
        runner = CaseRunner(
            _configs("A", "B"), FakeExecutor(), parser=parser, root=root,
            completed={("before/mod.py", "A")},
        )
        rows = list(runner.run(root / "before" / "mod.py", root / "after" / "mod.py"))
        assert [r.algorithm for r in rows] == ["B"]

        runner.completed.add(("before/mod.py", "B"))
        parser.parsed.clear()
        assert list(runner.run(root / "before" / "mod.py", root / "after" / "mod.py")) == []
        assert parser.parsed == []


# ---------------------------------------------------------------------------
# run_benchmark
# ---------------------------------------------------------------------------


class TestRunBenchmark:
    def test_missing_folders(self, tmp_path):
        (tmp_path / "before").mkdir()
        with pytest.raises(ConfigurationError, match="after/"):
            run_benchmark(tmp_path, ListWriter(), _configs("A"), config=CONFIG, executor=FakeExecutor())

    def test_summary_counts(self, tmp_path, capsys):
        root = _corpus(tmp_path, {
            "a.py": RENAME,
            "b.py": ("x = 1\n", "def broken(:\n"),
            "same.py": ("x = 1\n", "x = 1\n"),
        })
        writer = ListWriter()
        summary = run_benchmark(root, writer, _configs("A", "B"), config=CONFIG, executor=FakeExecutor())

        assert summary.total_pairs == 2
        assert summary.processed == 2
        assert summary.skipped == 1
        assert summary.rows_written == 2
        assert [(r.case, r.algorithm) for r in writer.rows] == [
            ("before/a.py", "A"), ("before/a.py", "B"),
        ]
        assert "Completed 2/2 pairs, 2 rows written" in capsys.readouterr().err

    @needs_fork
    def test_end_to_end_rename(self, tmp_path):
        root = _corpus(tmp_path, {"mod.py": RENAME})
        report = tmp_path / "report.csv"
        configs = resolve(["simple", "classic:bu_minsize=20"])

        with ReportWriter(report) as writer:
            run_benchmark(root, writer, configs, config=CONFIG)

        rows = read_report(report)
        assert len(rows) == 2
        assert [r.algorithm for r in rows] == ["simple", "classic:bu_minsize=20"]
        for row in rows:
            assert row.ok
            assert row.counts == EditCounts(script_size=1, inserts=0, deletes=0, updates=1, move_volume=0)

    @needs_fork
    def test_rerun_is_deterministic(self, tmp_path):
        root = _corpus(tmp_path / "corpus", {
            "a.py": RENAME,
            "pkg/b.py": ("x = 1\n", "x = 1\ny = foo(2)\n"),
            "pkg/c.py": (
                "def a():\n    return 1\n\ndef b():\n    return 2\n",
                "def b():\n    return 2\n\ndef a():\n    return 1\n",
            ),
        })
        structural = []
        for name in ("first.csv", "second.csv"):
            with ReportWriter(tmp_path / name) as writer:
                run_benchmark(root, writer, config=CONFIG)
            rows = read_report(tmp_path / name)
            structural.append([(r.case, r.algorithm, r.status, r.counts) for r in rows])

        assert len(structural[0]) == 3 * 4
        assert structural[0] == structural[1]

    @needs_fork
    def test_resume_skips_written_rows(self, tmp_path):
        root = _corpus(tmp_path / "corpus", {"a.py": RENAME, "b.py": RENAME})
        report = tmp_path / "report.csv"
        configs = resolve(["simple", "lcs"])

        with ReportWriter(report) as writer:
            run_benchmark(root, writer, configs[:1], config=CONFIG)
        with ReportWriter(report, resume=True) as writer:
            summary = run_benchmark(root, writer, configs, config=BenchConfig(progress=False, resume=True))

        assert summary.rows_written == 2
        rows = read_report(report)
        assert sorted((r.case, r.algorithm) for r in rows) == [
            ("before/a.py", "lcs"), ("before/a.py", "simple"),
            ("before/b.py", "lcs"), ("before/b.py", "simple"),
        ]

    def test_deeply_nested_file_skipped_and_run_continues(self, tmp_path, capsys):
        deep = "x = " + "-" * 200_000 + "1\n"
        root = _corpus(tmp_path, {
            "a_deep.py": ("x = 1\n", deep),
            "b_ok.py": RENAME,
        })
        writer = ListWriter()
        summary = run_benchmark(root, writer, _configs("A"), config=CONFIG, executor=FakeExecutor())

        assert [(r.case, r.algorithm) for r in writer.rows] == [("before/b_ok.py", "A")]
        assert summary.processed == 2
        assert summary.skipped == 1
        assert "Out of memory parsing before/a_deep.py" in capsys.readouterr().err

    def test_file_vanishing_after_discovery_skipped(self, tmp_path, capsys):
        root = _corpus(tmp_path, {"a.py": RENAME, "b.py": RENAME})

        class VanishingFinder:
            def compare(self, before_dir, after_dir):
                return [
                    (before_dir / "a.py", after_dir / "gone.py"),
                    (before_dir / "b.py", after_dir / "b.py"),
                ]

        writer = ListWriter()
        summary = run_benchmark(
            root, writer, _configs("A"), config=CONFIG,
            pair_finder=VanishingFinder(), executor=FakeExecutor(),
        )
        assert [r.case for r in writer.rows] == ["before/b.py"]
        assert summary.skipped == 1
        assert "Problem parsing before/a.py" in capsys.readouterr().err

    def test_completed_keys_ignored_without_resume(self, tmp_path):
        root = _corpus(tmp_path, {"a.py": RENAME})
        writer = ListWriter()
        writer.completed.add(("before/a.py", "A"))
        run_benchmark(root, writer, _configs("A"), config=CONFIG, executor=FakeExecutor())
        assert [(r.case, r.algorithm) for r in writer.rows] == [("before/a.py", "A")]

    def test_completed_keys_skipped_with_resume(self, tmp_path):
        root = _corpus(tmp_path, {"a.py": RENAME})
        writer = ListWriter()
        writer.completed.add(("before/a.py", "A"))
        run_benchmark(
            root, writer, _configs("A", "B"),
            config=BenchConfig(progress=False, resume=True), executor=FakeExecutor(),
        )
        assert [r.algorithm for r in writer.rows] == ["B"]

    @needs_fork
    def test_stack_exhausting_matcher_does_not_stop_run(self, tmp_path):
        root = _corpus(tmp_path / "corpus", {"a.py": RENAME, "b.py": RENAME})
        writer = ListWriter()
        configs = [MatcherConfiguration("recursing", RecursingMatcher)] + resolve(["simple"])
        summary = run_benchmark(root, writer, configs, config=CONFIG)

        assert summary.rows_written == 4
        assert [r.status for r in writer.rows] == [
            Status.OUT_OF_MEMORY, Status.SUCCESS, Status.OUT_OF_MEMORY, Status.SUCCESS,
        ]
