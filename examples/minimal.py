"""Minimal example: benchmark two matchers on a generated corpus.

Run with: python examples/minimal.py
"""

import tempfile
from pathlib import Path

from treematch_bench import BenchConfig, BenchmarkReport, ReportWriter, read_report, resolve, run_benchmark
from treematch_bench.metrics import EditVolume, MatchLatency


def make_corpus(root: Path) -> None:
    for i in range(5):
        for side, name in (("before", "old_name"), ("after", "new_name")):
            path = root / side / f"mod_{i}.py"
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(f"def {name}(x):\n    return x * {i}\n")


if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        make_corpus(root / "corpus")

        with ReportWriter(root / "report.csv") as writer:
            run_benchmark(
                root / "corpus",
                writer,
                resolve(["simple", "classic:bu_minsize=20"]),
                config=BenchConfig(timeout=2.0, progress=False),
            )

        report = BenchmarkReport.from_rows(read_report(root / "report.csv"), [MatchLatency(), EditVolume()])

    for algorithm, stats in report.summary.items():
        print(f"{algorithm}: {stats['match_ms_mean']:.2f} ms, mean script size {stats['mean_s']:.1f}")
    print(f"\nJSON output:\n{report.to_json()[:500]}...")
