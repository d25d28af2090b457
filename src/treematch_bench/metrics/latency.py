"""Latency metrics: per-case match timing statistics."""

from __future__ import annotations

from dataclasses import dataclass

from treematch_bench.results import CaseResult


@dataclass
class MatchLatency:
    """Match time statistics: mean, median, p95, p99 (milliseconds).

    Reads the authoritative (first) sample of successful rows only; timed
    out rows would just pile up at the budget.
    """

    @property
    def name(self) -> str:
        return "latency"

    def compute(self, rows: list[CaseResult]) -> dict[str, float]:
        latencies = sorted(r.match_time / 1e6 for r in rows if r.ok)
        if not latencies:
            return {
                "match_ms_mean": 0.0,
                "match_ms_median": 0.0,
                "match_ms_p95": 0.0,
                "match_ms_p99": 0.0,
            }

        n = len(latencies)
        mean = sum(latencies) / n
        median = latencies[n // 2] if n % 2 else (latencies[n // 2 - 1] + latencies[n // 2]) / 2
        p95 = latencies[int(n * 0.95)] if n > 1 else latencies[0]
        p99 = latencies[int(n * 0.99)] if n > 1 else latencies[0]

        return {
            "match_ms_mean": mean,
            "match_ms_median": median,
            "match_ms_p95": p95,
            "match_ms_p99": p99,
        }
