"""Machine-readable JSON reporter."""

from __future__ import annotations

from treematch_bench.results import BenchmarkReport


def to_json(report: BenchmarkReport) -> str:
    """Serialize a BenchmarkReport to a JSON string."""
    return report.to_json()
